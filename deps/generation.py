import os
from typing import Annotated, Optional, Tuple
from urllib.parse import unquote

import httpx
from fastapi import Depends, HTTPException, Query

from curriculum import is_valid_selection
from generator import ProblemGenerator
from history import question_history
from provider import CompletionClient

_http_client: Optional[httpx.Client] = None


def validated_selection(
    grade: Annotated[Optional[str], Query()] = None,
    topic: Annotated[Optional[str], Query()] = None,
) -> Tuple[str, str]:
    """
    Normalize and check grade/topic against the curriculum map.
    Returns (grade, topic) with the topic lower-cased.
    """
    norm_topic = unquote(topic).strip().lower() if topic else ""
    norm_grade = str(grade) if grade else ""

    if not norm_grade or not norm_topic:
        raise HTTPException(
            status_code=400, detail=f"Missing grade ({norm_grade}) or topic ({norm_topic})"
        )
    if not is_valid_selection(norm_grade, norm_topic):
        raise HTTPException(
            status_code=400, detail=f"Invalid grade ({norm_grade}) or topic ({norm_topic})"
        )
    return norm_grade, norm_topic


def require_api_key() -> str:
    """
    The provider key is read on every request so a missing key is reported,
    never silently degraded to fallback problems.
    """
    api_key = os.getenv("XAI_API_KEY", "")
    if not api_key:
        raise HTTPException(status_code=500, detail="Server configuration error: Missing API key")
    return api_key


def get_http_client() -> httpx.Client:
    global _http_client
    if _http_client is None:
        _http_client = httpx.Client()
    return _http_client


def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        _http_client.close()
        _http_client = None


def get_provider(
    api_key: Annotated[str, Depends(require_api_key)],
    http_client: Annotated[httpx.Client, Depends(get_http_client)],
) -> CompletionClient:
    return CompletionClient.from_env(api_key, http_client=http_client)


def get_generator(
    provider: Annotated[CompletionClient, Depends(get_provider)],
) -> ProblemGenerator:
    return ProblemGenerator(provider, question_history)

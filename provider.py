from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.x.ai/v1/chat/completions"
DEFAULT_MODEL = "grok-3"
MAX_TOKENS = 300
TEMPERATURE = 0.9


class ProviderError(Exception):
    """A failed call to the completion API. `status` is None when no response came back."""

    def __init__(self, message: str, status: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.data = data

    @property
    def error_message(self) -> str:
        # Providers report errors as {"error": {"message": ...}} or {"error": "..."}
        if isinstance(self.data, dict):
            err = self.data.get("error")
            if isinstance(err, dict) and err.get("message"):
                return str(err["message"])
            if isinstance(err, str) and err:
                return err
        return str(self)


class CompletionClient:
    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.model = model
        self._http = http_client or httpx.Client()

    @classmethod
    def from_env(cls, api_key: str, http_client: Optional[httpx.Client] = None) -> "CompletionClient":
        return cls(
            api_key=api_key,
            url=os.getenv("XAI_API_URL", DEFAULT_API_URL),
            model=os.getenv("XAI_MODEL", DEFAULT_MODEL),
            http_client=http_client,
        )

    def complete(self, prompt: str) -> Any:
        """Decoded JSON body, or the raw text when a 2xx body isn't JSON."""
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            r = self._http.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"{type(e).__name__}: {e}") from e

        if r.is_error:
            try:
                data = r.json()
            except ValueError:
                data = r.text
            raise ProviderError(
                f"Request failed with status code {r.status_code}",
                status=r.status_code,
                data=data,
            )

        try:
            data = r.json()
        except ValueError:
            logger.warning("Provider returned a non-JSON body (status %s)", r.status_code)
            return r.text
        logger.debug("completion raw response: %s", data)
        return data

    def close(self) -> None:
        self._http.close()


def extract_content(data: Any) -> Optional[str]:
    """choices[0].message.content, or None when any level is missing."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content:
        return None
    return content

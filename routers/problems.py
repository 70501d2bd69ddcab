from __future__ import annotations

import logging
from typing import Annotated, Optional, Tuple

from fastapi import APIRouter, Depends, Response

from deps.generation import get_generator, validated_selection
from generator import ProblemGenerator
from schemas.problems import ErrorOut, Problem, ProviderErrorOut

logger = logging.getLogger(__name__)

router = APIRouter(tags=["problems"])


@router.get(
    "/generate-problem",
    response_model=Problem,
    responses={400: {"model": ProviderErrorOut}, 500: {"model": ErrorOut}},
)
def generate_problem(
    response: Response,
    selection: Annotated[Tuple[str, str], Depends(validated_selection)],
    generator: Annotated[ProblemGenerator, Depends(get_generator)],
    nonce: Optional[str] = None,  # cache-buster from the client; unused
):
    grade, topic = selection
    logger.info("Generating problem for grade=%s topic=%s nonce=%s", grade, topic, nonce)

    outcome = generator.generate(grade, topic)
    if outcome.generated:
        response.headers["Cache-Control"] = "no-store"
    return outcome.problem

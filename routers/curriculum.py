from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter

from curriculum import get_curriculum

router = APIRouter(tags=["curriculum"])


@router.get("/get-curriculum-topics", response_model=Dict[str, List[str]])
def curriculum_topics():
    return get_curriculum()

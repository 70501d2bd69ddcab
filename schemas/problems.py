# schemas/problems.py
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel


class Problem(BaseModel):
    question: str
    answer: str
    # exactly 4 entries for multiple-choice, empty otherwise
    options: List[str] = []
    type: str


class ErrorOut(BaseModel):
    error: str


class ProviderErrorOut(BaseModel):
    error: str
    details: str
    status: Optional[int] = None
    responseData: Optional[Any] = None


class HealthOut(BaseModel):
    status: str
    timestamp: str

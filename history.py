from __future__ import annotations

import re
import threading
from collections import deque
from typing import Deque, List

HISTORY_CAPACITY = 20

_NON_WORD_RE = re.compile(r"[^a-z0-9\s]")


def normalize_question(question: str) -> str:
    """
    Duplicate-detection key: lower-cased, punctuation stripped, words sorted.
    "What is 2 + 2?" and "is what 2 2" collide.
    """
    cleaned = _NON_WORD_RE.sub("", question.lower())
    return " ".join(sorted(cleaned.split()))


class QuestionHistory:
    """Recently served questions, oldest first. Bounded FIFO, thread-safe."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        self.capacity = capacity
        self._items: Deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def remember(self, question: str) -> bool:
        """
        Record a question unless an equivalent one is already present.
        Check and insert happen under one lock so two requests cannot both accept it.
        """
        key = normalize_question(question)
        with self._lock:
            if key in self._items:
                return False
            self._items.append(key)  # deque(maxlen) drops the oldest
            return True

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


# Process-wide history shared by all requests
question_history = QuestionHistory()

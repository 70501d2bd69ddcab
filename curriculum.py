# curriculum.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)

_BASE = Path(__file__).resolve().parent
_DEFAULT_MAP = _BASE / "data" / "curriculum-map.json"


def _map_path() -> Path:
    return Path(os.getenv("CURRICULUM_MAP_PATH") or _DEFAULT_MAP)


def _read_map(p: Path) -> Dict[str, List[str]]:
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Curriculum map {p} must be a JSON object of grade -> topics")

    topics: Dict[str, List[str]] = {}
    for grade, names in data.items():
        if not isinstance(names, list):
            # Non-list entries -> ignore
            logger.warning("Skipping grade %r in %s: topics must be a list", grade, p)
            continue
        topics[str(grade)] = [str(n) for n in names]
    return topics


class Curriculum:
    _topics: Dict[str, List[str]] = {}

    @classmethod
    def load(cls) -> Dict[str, List[str]]:
        if not cls._topics:
            cls.reload()
        return cls._topics

    @classmethod
    def reload(cls) -> int:
        p = _map_path()
        cls._topics = _read_map(p)
        logger.info("Loaded curriculum map from %s (%d grades)", p, len(cls._topics))
        return len(cls._topics)


# Public API
def get_curriculum() -> Dict[str, List[str]]:
    return Curriculum.load()


def reload_curriculum() -> int:
    return Curriculum.reload()


def is_valid_selection(grade: str, topic: str) -> bool:
    """Topic match is case-insensitive; grade must be an exact key."""
    names = get_curriculum().get(grade)
    if not names:
        return False
    return topic.lower() in (n.lower() for n in names)

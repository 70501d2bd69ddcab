# Canned problems served when the provider can't give us a usable one.
# Keyed grade -> topic. Only grade 10 is covered so far; anything else
# gets a generic placeholder.

from __future__ import annotations

import random as _rnd
from typing import Dict, List, Optional

from schemas.problems import Problem

FALLBACK_PROBLEMS: Dict[str, Dict[str, List[Dict[str, str]]]] = {
    "10": {
        "geometry": [
            {
                "question": "What is the area of a triangle with base 6 cm and height 8 cm?",
                "answer": "24 cm²",
                "type": "geometry",
            },
            {
                "question": "Find the circumference of a circle with radius 5 cm (use π ≈ 3.14).",
                "answer": "31.4 cm",
                "type": "geometry",
            },
            {
                "question": "What is the measure of an interior angle of a regular pentagon?",
                "answer": "108 degrees",
                "type": "geometry",
            },
            {
                "question": "A rectangle has a length of 10 cm and a width of 4 cm. What is its perimeter?",
                "answer": "28 cm",
                "type": "geometry",
            },
            {
                "question": "What is the area of a circle with diameter 10 cm (use π ≈ 3.14)?",
                "answer": "78.5 cm²",
                "type": "geometry",
            },
            {
                "question": "Find the length of the hypotenuse of a right triangle with legs 3 cm and 4 cm.",
                "answer": "5 cm",
                "type": "geometry",
            },
            {
                "question": "What is the sum of the interior angles of a hexagon?",
                "answer": "720 degrees",
                "type": "geometry",
            },
        ],
        "functions": [
            {"question": "For the function f(x) = 2x + 3, what is f(4)?", "answer": "11", "type": "functions"},
            {
                "question": "What is the domain of the function f(x) = 1/(x-2)?",
                "answer": "All real numbers except x = 2",
                "type": "functions",
            },
            {
                "question": "Find the slope of the line given by f(x) = -3x + 5.",
                "answer": "-3",
                "type": "functions",
            },
            {"question": "If f(x) = x², what is f(-3)?", "answer": "9", "type": "functions"},
        ],
        "trigonometry": [
            {
                "question": "In a right triangle, if one angle is 30°, what is the sine of that angle?",
                "answer": "0.5",
                "type": "trigonometry",
            },
            {"question": "Find the cosine of 60°.", "answer": "0.5", "type": "trigonometry"},
        ],
        "quadratic equations": [
            {
                "question": "Solve the quadratic equation x² - 4x + 4 = 0.",
                "answer": "x = 2",
                "type": "quadratic equations",
            },
            {
                "question": "What is the vertex of the parabola y = x² + 2x - 3?",
                "answer": "(-1, -4)",
                "type": "quadratic equations",
            },
        ],
    },
}


def placeholder_problem(grade: str, topic: str) -> Problem:
    return Problem(
        question=(
            f"Fallback problem for grade {grade} ({topic}): "
            f"Solve a basic problem related to {topic}."
        ),
        answer="N/A",
        type=topic,
    )


def fallback_candidates(grade: str, topic: str) -> List[Problem]:
    """Bank entries for the pair, or a single generic placeholder."""
    entries = FALLBACK_PROBLEMS.get(grade, {}).get(topic)
    if not entries:
        return [placeholder_problem(grade, topic)]
    return [Problem(**raw) for raw in entries]


def pick_fallback(grade: str, topic: str, rng: Optional[_rnd.Random] = None) -> Problem:
    candidates = fallback_candidates(grade, topic)
    return (rng or _rnd).choice(candidates)

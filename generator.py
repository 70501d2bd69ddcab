from __future__ import annotations

import json
import logging
import random as _rnd
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from fallback import pick_fallback
from history import QuestionHistory
from provider import ProviderError, extract_content
from schemas.problems import Problem

logger = logging.getLogger(__name__)

# --- Prompt variety ---------------------------------------------------------------
QUESTION_TYPES = ["word problem", "equation problem", "multiple-choice", "real-world application"]
CONTEXTS = ["in a store", "during a trip", "at a zoo", "in a classroom", "at a park"]
DIFFICULTIES = ["easy", "medium", "hard"]

# --- Retry policy -----------------------------------------------------------------
MAX_ATTEMPTS = 7
RETRY_DELAY_SECONDS = 1.0
RETRYABLE_STATUSES = frozenset({429, 400, 500})


class CompletionProvider(Protocol):
    def complete(self, prompt: str) -> Any: ...


class ProviderConfigurationError(Exception):
    """Provider says our model/endpoint setup is wrong. Surfaced, never retried."""

    error = "Provider configuration error"

    def __init__(self, details: str, status: Optional[int] = None, response_data: Any = None):
        super().__init__(details)
        self.details = details
        self.status = status
        self.response_data = response_data


class ModelAccessError(ProviderConfigurationError):
    error = "Model access error"


class EndpointNotFoundError(ProviderConfigurationError):
    error = "API endpoint error"


class InvalidCompletion(ValueError):
    """Completion text that can't be turned into a problem."""


@dataclass
class GenerationOutcome:
    problem: Problem
    # False when the problem came from the fallback bank
    generated: bool


def build_prompt(grade: str, topic: str, question_type: str, context: str, difficulty: str) -> str:
    return (
        f"Generate a unique {question_type} math problem for grade {grade} on the topic of "
        f"{topic} in a {context}. The problem must be appropriate for Grade {grade} students, "
        f"focusing on {topic} concepts (e.g., triangles, circles, angles for geometry). "
        f"The problem should be {difficulty} difficulty. Ensure it differs from previous "
        "problems by varying numbers and scenarios. Return the response as a JSON object: "
        '{"question": "", "answer": "", "options": []}. For multiple-choice questions, '
        'provide exactly 4 options in the "options" array, with the correct answer included. '
        'For non-multiple-choice questions, set "options" to an empty array.'
    )


def parse_completion(content: str) -> Dict[str, Any]:
    """
    Structural check, then JSON parse. Returns the parsed object with
    question/answer as non-empty strings and options as a list of strings.
    """
    if not content.startswith("{") or not content.endswith("}"):
        raise InvalidCompletion("Response is not valid JSON")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidCompletion(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidCompletion("Response is not a JSON object")

    question = data.get("question")
    answer = data.get("answer")
    if question in (None, "") or answer in (None, ""):
        raise InvalidCompletion("Missing question or answer in parsed response")

    options = data.get("options")
    return {
        "question": str(question),
        "answer": str(answer),
        "options": [str(o) for o in options] if isinstance(options, list) else [],
    }


def _configuration_error(err: ProviderError) -> Optional[ProviderConfigurationError]:
    if err.status != 404:
        return None
    message = err.error_message
    if "model" in message:
        return ModelAccessError(
            "The configured model is not available. Check the provider's model list "
            "and the XAI_MODEL setting.",
            status=err.status,
            response_data=err.data,
        )
    if "resource was not found" in message:
        return EndpointNotFoundError(
            "The completion endpoint was not found. Check the XAI_API_URL setting "
            "against the provider's API documentation.",
            status=err.status,
            response_data=err.data,
        )
    return None


class ProblemGenerator:
    """
    Bounded retry loop around one provider call. Every failure that isn't a
    provider configuration error ends in `pick_fallback`.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        history: QuestionHistory,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Optional[Callable[[float], None]] = None,
        rng: Optional[_rnd.Random] = None,
    ) -> None:
        self.provider = provider
        self.history = history
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.sleep = sleep or time.sleep
        self.rng = rng or _rnd.Random()

    def generate(self, grade: str, topic: str) -> GenerationOutcome:
        try:
            problem = self._generate(grade, topic)
        except ProviderConfigurationError:
            raise
        except Exception:
            logger.exception("Unexpected error generating problem for grade=%s topic=%s", grade, topic)
            return self._fallback(grade, topic, "unexpected error")

        if problem is None:
            return self._fallback(grade, topic, "provider unavailable")
        return GenerationOutcome(problem=problem, generated=True)

    def _generate(self, grade: str, topic: str) -> Optional[Problem]:
        """Returns a fresh problem, or None when we should fall back."""
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self.sleep(self.retry_delay)

            prompt = self._prompt(grade, topic)
            logger.debug("Generated prompt (attempt %d): %s", attempt, prompt)

            try:
                data = self.provider.complete(prompt)
            except ProviderError as e:
                config_error = _configuration_error(e)
                if config_error is not None:
                    logger.error("Provider configuration error (status %s): %s", e.status, e.error_message)
                    raise config_error from e
                if e.status in RETRYABLE_STATUSES:
                    logger.warning(
                        "Provider error (status %s), retrying (attempt %d/%d)",
                        e.status, attempt, self.max_attempts,
                    )
                    continue
                logger.error("Provider error (status %s): %s", e.status, e.error_message)
                return None

            content = extract_content(data)
            if content is None:
                logger.warning("Invalid provider response (attempt %d/%d): %s", attempt, self.max_attempts, data)
                continue

            try:
                parsed = parse_completion(content)
            except InvalidCompletion as e:
                logger.warning(
                    "Error parsing provider response (attempt %d/%d): %s. Raw response: %s",
                    attempt, self.max_attempts, e, content,
                )
                continue

            if not self.history.remember(parsed["question"]):
                logger.info("Duplicate question detected (attempt %d/%d): %s", attempt, self.max_attempts, parsed["question"])
                continue

            return Problem(**parsed, type=topic)

        logger.error("Max attempts reached for grade=%s topic=%s", grade, topic)
        return None

    def _prompt(self, grade: str, topic: str) -> str:
        return build_prompt(
            grade,
            topic,
            question_type=self.rng.choice(QUESTION_TYPES),
            context=self.rng.choice(CONTEXTS),
            difficulty=self.rng.choice(DIFFICULTIES),
        )

    def _fallback(self, grade: str, topic: str, reason: str) -> GenerationOutcome:
        problem = pick_fallback(grade, topic, self.rng)
        logger.info("Using fallback problem (%s): %s", reason, problem.question)
        return GenerationOutcome(problem=problem, generated=False)


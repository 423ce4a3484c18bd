"""OpenRouter client for subjective book difficulty scoring.

The model is asked to rate how much time and energy a book takes to read
(0-100), relative to the other books the reader has scored, and to return a
short introduction, reading advice and an explanation of the score.

Scoring is best effort: a missing key, network failure or unparseable reply
produces a placeholder rating instead of an exception.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..config import get_config

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a literary critic and difficulty assessor. Output JSON only."

PROMPT_TEMPLATE = """
Rate the book "{title}" by {author} for a reading challenge.

Context - the reader is also reading these books:
{context}

Provide:
1. Book Score (0-100): A score reflecting the TIME and ENERGY required to read this book. Consider:
   - Reading complexity (dense prose, technical jargon, philosophical depth)
   - Length and time commitment
   - Mental effort required
   - Compare relatively to the other books in the list (without naming them) - is this harder or easier?
   Higher score = more challenging = more reward.
2. Intro: A brief introduction to the book (2-3 sentences, no spoilers).
3. Reading Advice: Tips for reading this book effectively (no spoilers).
4. Score Explanation: Why this score compared to a typical book or others in the list (don't name specific books).

Return JSON only: {{ "score": number, "intro": "string", "readingAdvice": "string", "scoreExplanation": "string" }}
"""

# First {...} span, across lines; tolerates prose or code fences around it
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class OpenRouterError(Exception):
    """Base exception for OpenRouter API errors."""

    pass


@dataclass
class DifficultyRating:
    """A difficulty rating from the scoring model."""

    score: float
    intro: str = ""
    reading_advice: str = ""
    score_explanation: str = ""
    placeholder: bool = False  # True when no real rating could be obtained

    @classmethod
    def missing_key(cls) -> "DifficultyRating":
        return cls(
            score=50,
            intro="API key missing. Set OPENROUTER_API_KEY to enable AI ratings.",
            reading_advice="Cannot generate advice without an API key.",
            score_explanation="Placeholder score. Configure the API to get real ratings.",
            placeholder=True,
        )

    @classmethod
    def failed(cls, reason: str = "") -> "DifficultyRating":
        explanation = f"Rating unavailable: {reason}" if reason else ""
        return cls(
            score=0,
            intro="Failed to get AI rating. Please try again.",
            reading_advice="",
            score_explanation=explanation,
            placeholder=True,
        )


def clamp_score(value: Any) -> Optional[float]:
    """Coerce a model-supplied score to a number in [0, 100]."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or value != value:
        return None
    return float(min(100, max(0, value)))


def parse_rating(content: str) -> DifficultyRating:
    """Parse a model reply into a rating.

    Raises:
        OpenRouterError: If no JSON object with a numeric score is found
    """
    match = JSON_OBJECT_RE.search(content or "")
    if not match:
        raise OpenRouterError("No JSON object in model reply")

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise OpenRouterError(f"Invalid JSON in model reply: {e}")

    if not isinstance(data, dict):
        raise OpenRouterError("Model reply is not a JSON object")

    score = clamp_score(data.get("score"))
    if score is None:
        raise OpenRouterError("Model reply has no numeric score")

    def text(key: str) -> str:
        value = data.get(key)
        return value.strip() if isinstance(value, str) else ""

    return DifficultyRating(
        score=score,
        intro=text("intro"),
        reading_advice=text("readingAdvice"),
        score_explanation=text("scoreExplanation"),
    )


class OpenRouterClient:
    """Client for the OpenRouter chat-completions API."""

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """Initialize client.

        Args:
            api_key: OpenRouter key (default: OPENROUTER_API_KEY)
            model: Model slug (default: OPENROUTER_MODEL)
            timeout: Request timeout in seconds
        """
        config = get_config()
        self.api_key = api_key if api_key is not None else config.openrouter_api_key
        self.model = model or config.openrouter_model
        self.timeout = timeout or config.llm_timeout
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def _post(self, path: str, payload: dict) -> dict:
        """Make POST request with error handling."""
        try:
            response = self._session.post(
                f"{self.BASE_URL}{path}",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            raise OpenRouterError("Request timed out")
        except requests.exceptions.HTTPError as e:
            raise OpenRouterError(f"HTTP error: {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            raise OpenRouterError(f"Request failed: {e}")
        except ValueError:
            raise OpenRouterError("Response is not JSON")

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the reply text."""
        data = self._post("/chat/completions", {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        })
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise OpenRouterError("Unexpected response shape")

    def rate_book(
        self,
        title: str,
        author: str,
        context_books: Optional[list[str]] = None,
    ) -> DifficultyRating:
        """Rate a book's reading difficulty.

        Args:
            title: Book title
            author: Book author (may be empty)
            context_books: Descriptions of the reader's other scored books

        Returns:
            DifficultyRating; ``placeholder`` is set when rating failed
        """
        if not self.api_key:
            logger.warning("Missing OPENROUTER_API_KEY, returning placeholder rating")
            return DifficultyRating.missing_key()

        prompt = PROMPT_TEMPLATE.format(
            title=title,
            author=author or "an unknown author",
            context=", ".join(context_books or []) or "(none yet)",
        )

        try:
            return parse_rating(self.complete(prompt))
        except OpenRouterError as e:
            logger.warning("AI rating failed for %r: %s", title, e)
            return DifficultyRating.failed(str(e))

"""Intent classification with a rule-based fast path for time queries."""

from __future__ import annotations

import logging
import re

from langchain_core.prompts import ChatPromptTemplate

from stepwise_rag.config import GenerationConfig
from stepwise_rag.llm.backend import ChatBackend
from stepwise_rag.types import Classification, IntentDecision

logger = logging.getLogger(__name__)

TIME_PHRASE = re.compile(
    r"\b(what\s+time\s+is\s+it|current\s+time|time\s+now)\b", flags=re.IGNORECASE
)
_FIRST_WORD = re.compile(r"[a-z]+")

_CLASSIFY_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "Respond ONLY with 'question' or 'general'."),
        ("human", 'Classify: "{text}"'),
    ]
)


def is_time_query(text: str) -> bool:
    return TIME_PHRASE.search(text) is not None


def parse_classification(raw: str | None) -> Classification:
    """Map free-text model output to a classification.

    Only the first alphabetic token of the lowercased output is considered.
    Empty, malformed, or unexpected output maps to `GENERAL`.
    """

    if not raw:
        return Classification.GENERAL
    match = _FIRST_WORD.search(raw.strip().lower())
    if match is None:
        return Classification.GENERAL
    if "question" in match.group(0):
        return Classification.QUESTION
    return Classification.GENERAL


class IntentClassifier:
    """Decides whether a query is a question or a general utterance."""

    def __init__(self, backend: ChatBackend, config: GenerationConfig | None = None) -> None:
        self.backend = backend
        self.config = config or GenerationConfig(temperature=0.3, max_tokens=10)

    def fast_path(self, text: str) -> IntentDecision | None:
        """Return a decision without a model call when `text` asks for the time."""
        if is_time_query(text):
            return IntentDecision(classification=Classification.GENERAL, fast_path=True)
        return None

    def classify(self, text: str, *, headers: dict[str, str] | None = None) -> IntentDecision:
        decision = self.fast_path(text)
        if decision is not None:
            return decision

        raw = self.backend.complete(
            _CLASSIFY_PROMPT.format_messages(text=text),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            headers=headers or {},
        )
        classification = parse_classification(raw)
        logger.debug("classifier output %r mapped to %s", raw, classification.value)
        return IntentDecision(classification=classification, fast_path=False, raw_output=raw)

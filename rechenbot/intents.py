"""Ordered, data-driven intent rules and the matcher that walks them."""

import logging
import random
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"


def normalize(text: str) -> str:
    """Trim the ends and lower-case. Internal whitespace is left alone."""
    return text.strip().lower()


@dataclass(frozen=True)
class IntentRule:
    name: str
    kind: MatchKind
    phrases: tuple[str, ...]
    responses: tuple[str, ...]

    def matches(self, normalized: str) -> bool:
        if self.kind is MatchKind.EXACT:
            return normalized in self.phrases
        return any(phrase in normalized for phrase in self.phrases)

    def respond(self, rng: random.Random) -> str:
        if len(self.responses) == 1:
            return self.responses[0]
        return rng.choice(self.responses)


def build_rule(name: str, kind: str, phrases: list[str], responses: list[str]) -> IntentRule:
    """Build a rule from plain config values.

    Raises:
        ValueError: On an unknown match kind, or empty phrases/responses.
    """
    try:
        match_kind = MatchKind(kind)
    except ValueError:
        raise ValueError(f"Intent '{name}': unknown match kind '{kind}'") from None
    normalized = tuple(normalize(p) for p in phrases if normalize(p))
    if not normalized:
        raise ValueError(f"Intent '{name}' has no phrases")
    if not responses:
        raise ValueError(f"Intent '{name}' has no responses")
    return IntentRule(
        name=name,
        kind=match_kind,
        phrases=normalized,
        responses=tuple(responses),
    )


class IntentMatcher:
    """First-match-wins lookup over an ordered rule list.

    The random source is shared across calls so seeded runs stay reproducible.
    """

    def __init__(self, rules: list[IntentRule], rng: random.Random | None = None) -> None:
        self._rules = tuple(rules)
        self._rng = rng if rng is not None else random.Random()

    @property
    def rules(self) -> tuple[IntentRule, ...]:
        return self._rules

    def find(self, text: str) -> IntentRule | None:
        """Return the first rule that fires on text, or None."""
        normalized = normalize(text)
        for rule in self._rules:
            if rule.matches(normalized):
                return rule
        return None

    def match(self, text: str) -> str | None:
        """Return the winning rule's response, or None when no rule fires."""
        rule = self.find(text)
        if rule is None:
            return None
        logger.debug("Intent matched: %s", rule.name)
        return rule.respond(self._rng)

"""Reply resolution: intents first, arithmetic second, fallback last."""

import logging
from decimal import Decimal

from rechenbot.evaluator import evaluate
from rechenbot.intents import IntentMatcher
from rechenbot.models import EvalNumber

logger = logging.getLogger(__name__)

# Plain decimal notation inside [1e-6, 1e21), exponent form outside.
_FIXED_BELOW = 1e21
_FIXED_FROM = 1e-6


def format_number(value: float) -> str:
    """Format a result the way the chat displays numbers.

    25, 4, 0.5, 0.00001 print in plain decimal notation; very small or very
    large magnitudes use a short exponent form such as 1e-7 or 1.5e+21.
    """
    if value.is_integer() and abs(value) < _FIXED_BELOW:
        return str(int(value))
    text = repr(value)
    if _FIXED_FROM <= abs(value) < _FIXED_BELOW:
        return format(Decimal(text), "f")
    mantissa, _, exponent = text.partition("e")
    if not exponent:
        return text
    power = int(exponent)
    return f"{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"


class ResponseResolver:
    """Compose the intent matcher and the evaluator into one reply per input.

    Args:
        matcher: Intent lookup tried first.
        success_template: Format string with a ``{result}`` field.
        fallback: Reply used when neither an intent nor arithmetic applies.
    """

    def __init__(self, matcher: IntentMatcher, success_template: str, fallback: str) -> None:
        self._matcher = matcher
        self._success_template = success_template
        self._fallback = fallback

    @property
    def fallback(self) -> str:
        return self._fallback

    def resolve(self, text: str) -> str:
        """Return the reply for a single, already trimmed, non-empty input."""
        reply = self._matcher.match(text)
        if reply is not None:
            return reply

        result = evaluate(text)
        if isinstance(result, EvalNumber):
            logger.debug("Arithmetic result for %r: %s", text, result.value)
            return self._success_template.format(result=format_number(result.value))

        logger.debug("Fallback for %r (%s)", text, result.kind.value)
        return self._fallback

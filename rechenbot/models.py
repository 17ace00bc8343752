"""Pure dataclasses and enums for the chat engine. No logic, no deps."""

from dataclasses import dataclass
from enum import Enum


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "ai"   # persisted history uses "ai"


@dataclass(frozen=True)
class Message:
    speaker: Speaker
    text: str


class EvalErrorKind(str, Enum):
    INVALID_CHARACTERS = "invalid_characters"
    SYNTAX_ERROR = "syntax_error"
    NON_FINITE = "non_finite"


class PersistenceErrorKind(str, Enum):
    ABSENT = "absent"
    CORRUPT = "corrupt"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class EvalNumber:
    value: float


@dataclass(frozen=True)
class EvalError:
    kind: EvalErrorKind


EvaluationResult = EvalNumber | EvalError

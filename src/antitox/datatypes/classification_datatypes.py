"""Result types returned by the classifier adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from antitox.datatypes.action_datatypes import Verdict


class FailureKind(Enum):
    """Why a classifier round did not produce a usable verdict list.

    VETO: the model explicitly declined to answer (content-safety block).
    TRANSPORT: network/HTTP/API error, or a veto the fallback could not resolve.
    PARSE: the reply arrived but its verdict payload could not be read.
    """

    VETO = "veto"
    TRANSPORT = "transport"
    PARSE = "parse"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ModelReply:
    """Outcome of a single chat-completion request against one model."""

    model: str
    content: str | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Outcome of one classification round.

    Only ``TRANSPORT`` ever reaches the caller as a failure: vetoes are resolved
    by the fallback model (or become TRANSPORT) and parse failures are reported
    as a successful, empty verdict list with ``parse_failed`` set.
    """

    verdicts: List[Verdict] = field(default_factory=list)
    failure: FailureKind | None = None
    model: str = ""
    parse_failed: bool = False
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, verdicts: List[Verdict], model: str, parse_failed: bool = False) -> ClassificationResult:
        return cls(verdicts=list(verdicts), model=model, parse_failed=parse_failed)

    @classmethod
    def failed(cls, kind: FailureKind, model: str, detail: str = "") -> ClassificationResult:
        return cls(failure=kind, model=model, detail=detail)

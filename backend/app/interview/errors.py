from __future__ import annotations

from dataclasses import dataclass

from core.state import ErrorKind


class InterviewError(Exception):
    """Base class for mock interview failures."""


class InvalidConfigError(InterviewError, ValueError):
    pass


class InvalidTransitionError(InterviewError):
    pass


class CaptureError(InterviewError):
    pass


class ExchangeError(InterviewError):
    pass


class ExchangeBusyError(ExchangeError):
    pass


class ExchangeClosedError(ExchangeError):
    pass


class ExchangeTimeoutError(ExchangeError):
    pass


@dataclass(frozen=True)
class SessionError:
    """Last error surfaced to the candidate, rendered inline by the view."""

    kind: ErrorKind
    message: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}

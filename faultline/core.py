"""
faultline - Core types and severity taxonomy.

Defines:
- Severity codes (integer, bitmask compatible)
- FaultEvent (the normalized shape every fault channel is converted into)
- HandlerEntry (registry record)
- FaultCallback protocol (the handler contract)
- FaultRecorder (the runtime's "last recorded fault")
"""

from __future__ import annotations

from enum import IntEnum
from dataclasses import dataclass
from typing import Optional, Protocol


# ============================================================================
# Severity
# ============================================================================

class Severity(IntEnum):
    """
    Fault severity codes.

    The codes are bit flags so a reporting level can be expressed as a mask
    (see ``EscalationPolicy``). The set is open: any integer may be reported
    as a severity, unknown ones are categorised as "Unknown".
    """
    ERROR = 1
    WARNING = 2
    PARSE = 4
    NOTICE = 8
    CORE_ERROR = 16
    CORE_WARNING = 32
    COMPILE_ERROR = 64
    COMPILE_WARNING = 128
    USER_ERROR = 256
    USER_WARNING = 512
    USER_NOTICE = 1024
    STRICT = 2048
    RECOVERABLE_ERROR = 4096
    DEPRECATED = 8192
    USER_DEPRECATED = 16384
    ALL = 32767


_CATEGORIES: dict[int, str] = {
    Severity.ERROR: "Error",
    Severity.USER_ERROR: "Error",
    Severity.CORE_ERROR: "Error",
    Severity.COMPILE_ERROR: "Error",
    Severity.PARSE: "Error",
    Severity.RECOVERABLE_ERROR: "Warning",
    Severity.CORE_WARNING: "Warning",
    Severity.WARNING: "Warning",
    Severity.COMPILE_WARNING: "Warning",
    Severity.USER_WARNING: "Warning",
    Severity.STRICT: "Warning",
    Severity.DEPRECATED: "Deprecated",
    Severity.USER_DEPRECATED: "Deprecated",
    Severity.NOTICE: "Notice",
    Severity.USER_NOTICE: "Notice",
}

DEPRECATED_SEVERITIES = frozenset({Severity.DEPRECATED, Severity.USER_DEPRECATED})


def severity_name(severity: int) -> str:
    """
    Get a common name for a severity code.

    Args:
        severity: Any integer severity code

    Returns:
        One of "None", "Error", "Warning", "Deprecated", "Notice", "Unknown"
    """
    if severity == 0:
        return "None"
    return _CATEGORIES.get(severity, "Unknown")


# Checked in order; first matching base class wins.
_WARNING_SEVERITIES: tuple[tuple[type[Warning], Severity], ...] = (
    (DeprecationWarning, Severity.DEPRECATED),
    (PendingDeprecationWarning, Severity.DEPRECATED),
    (FutureWarning, Severity.USER_DEPRECATED),
    (SyntaxWarning, Severity.COMPILE_WARNING),
    (ImportWarning, Severity.CORE_WARNING),
    (ResourceWarning, Severity.NOTICE),
    (RuntimeWarning, Severity.WARNING),
    (BytesWarning, Severity.WARNING),
    (UnicodeWarning, Severity.WARNING),
    (EncodingWarning, Severity.WARNING),
)


def severity_for_warning(category: type[Warning]) -> Severity:
    """Map a Python warning category onto a severity code."""
    for base, severity in _WARNING_SEVERITIES:
        if issubclass(category, base):
            return severity
    return Severity.USER_WARNING


# ============================================================================
# FaultEvent
# ============================================================================

@dataclass(frozen=True, slots=True)
class FaultEvent:
    """
    Normalized fault event.

    All three fault channels (recoverable faults, uncaught exceptions,
    end-of-process faults) are converted into this shape before dispatch.
    Missing ``file``/``line`` stay ``None`` here; display code substitutes
    ``"unknown"``.
    """

    severity: int
    message: str
    source: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int | str] = None
    trace: Optional[str] = None

    @property
    def severity_name(self) -> str:
        return severity_name(self.severity)

    def as_args(self) -> tuple:
        """Positional arguments for the callback contract."""
        return (self.severity, self.message, self.source, self.file, self.line, self.trace)

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "severity_name": self.severity_name,
            "message": self.message,
            "source": self.source,
            "file": self.file,
            "line": self.line,
            "trace": self.trace,
        }


# ============================================================================
# Handler contract
# ============================================================================

class FaultCallback(Protocol):
    """
    Callback contract for registered handlers.

    Return True if the fault was handled; True prevents lower priority
    handlers from running.
    """

    def __call__(
        self,
        severity: int,
        message: str,
        source: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
        trace: Optional[str] = None,
    ) -> bool: ...


@dataclass(frozen=True, slots=True)
class HandlerEntry:
    """Registry record for one callback."""

    identifier: str
    priority: int
    callback: FaultCallback


# ============================================================================
# FaultRecorder - last recorded fault
# ============================================================================

@dataclass(frozen=True, slots=True)
class RecordedFault:
    severity: int
    message: str
    file: Optional[str] = None
    line: Optional[int] = None


class FaultRecorder:
    """
    Holds the last fault the runtime recorded but could not deliver in flight.

    Queried by the end-of-process adapter. Only the most recent fault is kept.
    """

    def __init__(self):
        self._last: Optional[RecordedFault] = None

    def record(
        self,
        severity: int,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        self._last = RecordedFault(severity, message, file, line)

    def last(self) -> Optional[RecordedFault]:
        return self._last

    def clear(self) -> None:
        self._last = None

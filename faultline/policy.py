"""
faultline - Escalation policy.

Decides whether a recoverable fault is converted into a raised FaultError.
Throwing for recoverable faults can break applications in unexpected ways,
so escalation is governed by a reporting mask: only severities included in
the mask are raised. Deprecations are never raised.
"""

from __future__ import annotations

from typing import Optional

from .core import DEPRECATED_SEVERITIES, Severity


class FaultError(Exception):
    """
    A recoverable fault escalated to an exception.

    Attributes:
        message: Fault message
        code: Numeric code (part of the dispatch source label)
        severity: Severity code of the original fault
        file: File the fault was reported in
        line: Line the fault was reported on
    """

    def __init__(
        self,
        message: str,
        code: int = 0,
        severity: int = Severity.ERROR,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = severity
        self.file = file
        self.line = line

    def __repr__(self) -> str:
        return f"FaultError({self.message!r}, severity={self.severity}, file={self.file!r}, line={self.line})"


class EscalationPolicy:
    """
    Reporting-mask driven escalation.

    Usage:
        ```python
        policy = EscalationPolicy(Severity.ALL & ~Severity.NOTICE)
        policy.convert(Severity.WARNING, "disk almost full", __file__, 10)  # raises
        ```
    """

    def __init__(self, reporting: int = Severity.ALL):
        self.reporting = int(reporting)

    def should_escalate(self, severity: int) -> bool:
        if severity in DEPRECATED_SEVERITIES:
            return False
        return bool(self.reporting & severity)

    def convert(
        self,
        severity: int,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ) -> bool:
        """
        Raise the fault as a FaultError if the policy escalates it.

        Returns:
            False when the fault is not escalated

        Raises:
            FaultError: If the severity is reported and not a deprecation
        """
        if not self.should_escalate(severity):
            return False

        raise FaultError(message, 0, severity, file, line)

"""
faultline - Fault handlers.

Handlers are plain callables satisfying the FaultCallback contract:

    callback(severity, message, source, file, line, trace) -> bool

Returning True marks the fault as handled and stops lower priority
handlers from running.

Pre-built handlers:
1. DisplayHandler: Write the fault to a text stream (the built-in fallback)
2. LoggingHandler: Log the fault through the logging module
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from .core import FaultEvent, severity_name


class FaultHandler(ABC):
    """
    Abstract base class for fault handlers.

    Subclasses implement ``handle(event)``; instances are directly
    registrable because ``__call__`` adapts the callback contract.

    Example:
        ```python
        class AlertHandler(FaultHandler):
            def handle(self, event: FaultEvent) -> bool:
                if event.severity_name == "Error":
                    pager.send(event.message)
                    return True
                return False

        dispatcher.register("alert", AlertHandler(), priority=50)
        ```
    """

    @abstractmethod
    def handle(self, event: FaultEvent) -> bool:
        """
        Handle a fault event.

        Returns:
            True if the fault was handled
        """
        pass

    def __call__(
        self,
        severity: int,
        message: str,
        source: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
        trace: Optional[str] = None,
    ) -> bool:
        return self.handle(FaultEvent(severity, message, source, file, line, trace))


def format_fault(event: FaultEvent) -> str:
    """Render an event the way DisplayHandler writes it."""
    file = event.file if event.file is not None else "unknown"
    line = event.line if event.line is not None else "unknown"
    source = event.source or ""

    text = f"\n{severity_name(event.severity)} {source} {event.message} IN {file}:{line}\n"
    if event.trace:
        text += f"Stack trace:\n{event.trace}\n"
    return text


class DisplayHandler(FaultHandler):
    """
    Write faults to a text stream.

    This is the dispatcher's fallback: faults raised by other handlers are
    displayed here. Never claims a fault.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Args:
            stream: Target stream; sys.stdout at call time when None
        """
        self.stream = stream

    def handle(self, event: FaultEvent) -> bool:
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(format_fault(event))
        stream.flush()
        return False


class LoggingHandler(FaultHandler):
    """
    Log all faults with structured metadata.

    Always declines (does not claim faults). Used for observability.

    Usage:
        ```python
        dispatcher.register("log", LoggingHandler(), priority=100)
        ```
    """

    LEVELS = {
        "Error": logging.ERROR,
        "Warning": logging.WARNING,
        "Deprecated": logging.INFO,
        "Notice": logging.INFO,
        "Unknown": logging.WARNING,
    }

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize logging handler.

        Args:
            logger: Logger to use
        """
        self.logger = logger or logging.getLogger("faultline.faults")

    def handle(self, event: FaultEvent) -> bool:
        """Log fault and decline."""
        level = self.LEVELS.get(event.severity_name, logging.WARNING)
        where = f"{event.file or 'unknown'}:{event.line if event.line is not None else 'unknown'}"

        self.logger.log(
            level,
            f"[{event.severity_name}] {event.source or '-'}: {event.message} ({where})",
            extra={"fault": event.to_dict()},
        )
        return False

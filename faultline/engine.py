"""
faultline - Fault Dispatcher.

The FaultDispatcher is the runtime fault processor that:
1. Keeps the registry of prioritized fault callbacks
2. Normalizes the three fault channels into FaultEvents
   - recoverable faults (warnings, host reported faults)
   - uncaught exceptions
   - faults left behind at process shutdown
3. Dispatches events to callbacks, highest priority first, until one
   reports the fault as handled
4. Isolates callbacks: a callback that raises never aborts dispatch; its
   failure is shown through the fallback display handler instead

One dispatcher is created by the application's composition root and passed
to whatever installs the interpreter hooks (see ``faultline.hooks``).
Dispatch is synchronous and runs on the calling thread.
"""

from __future__ import annotations

import logging
import threading
import traceback
from typing import Optional

from .config import FaultsConfig
from .core import FaultCallback, FaultEvent, FaultRecorder, HandlerEntry, Severity
from .handlers import DisplayHandler, FaultHandler, LoggingHandler
from .policy import FaultError
from .registry import DEFAULT_PRIORITY, HandlerRegistry
from .trace import capture_frames, reconstruct


def source_from_exception(exc: BaseException) -> str:
    """
    Build the ``Type::code`` source label of an exception.

    The code is ``exc.code`` or ``exc.errno`` when either is an int, else 0.
    """
    cls = type(exc)
    name = cls.__qualname__ if cls.__module__ == "builtins" else f"{cls.__module__}.{cls.__qualname__}"

    code = 0
    for attr in ("code", "errno"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            code = value
            break

    return f"{name}::{code}"


def _origin(exc: BaseException) -> tuple[Optional[str], Optional[int]]:
    """File and line an exception was raised at."""
    if isinstance(exc, FaultError) and exc.file is not None:
        return exc.file, exc.line

    tb = exc.__traceback__
    if tb is None:
        return None, None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


def event_from_exception(exc: BaseException, severity: Optional[int] = None) -> FaultEvent:
    """
    Normalize an exception into a FaultEvent.

    Args:
        exc: Exception to normalize
        severity: Forced severity; otherwise ``exc.severity`` or ERROR
    """
    if severity is None:
        severity = getattr(exc, "severity", None)
        if not isinstance(severity, int) or isinstance(severity, bool):
            severity = Severity.ERROR

    file, line = _origin(exc)

    if exc.__traceback__ is not None:
        trace = "".join(traceback.format_tb(exc.__traceback__)).rstrip("\n")
    else:
        trace = ""
    if not trace:
        trace = (
            "#0 {main}\n"
            f"\tthrown in {file if file is not None else 'unknown'} "
            f"on {line if line is not None else 'unknown'}"
        )

    return FaultEvent(
        severity=severity,
        message=str(exc),
        source=source_from_exception(exc),
        file=file,
        line=line,
        trace=trace,
    )


class FaultDispatcher:
    """
    Runtime fault dispatcher.

    Usage:
        ```python
        dispatcher = FaultDispatcher(FaultsConfig(display_errors=True))
        dispatcher.register("mail", send_alert, priority=50)

        try:
            run()
        except Exception as e:
            dispatcher.catch_exception(e)
        ```
    """

    def __init__(
        self,
        config: Optional[FaultsConfig] = None,
        *,
        recorder: Optional[FaultRecorder] = None,
        fallback: Optional[FaultHandler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize fault dispatcher.

        Args:
            config: Dispatcher configuration (defaults if None)
            recorder: Source of the last recorded fault for the shutdown adapter
            fallback: Handler that displays callback failures
            logger: Logger for dispatcher bookkeeping
        """
        self.config = config or FaultsConfig()
        self.recorder = recorder or FaultRecorder()
        self.fallback = fallback or DisplayHandler()
        self.logger = logger or logging.getLogger(f"{self.config.logger_name}.dispatcher")

        self.registry = HandlerRegistry()
        # Per thread: only same-thread re-entry counts as nested.
        self._local = threading.local()

        if self.config.display_errors:
            self.register("display", self.fallback, self.config.display_priority)
        if self.config.log_faults:
            self.register(
                "log",
                LoggingHandler(logging.getLogger(f"{self.config.logger_name}.faults")),
                self.config.log_priority,
            )

    # ========================================================================
    # Callback Registration
    # ========================================================================

    def register(
        self,
        identifier: str,
        callback: FaultCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """
        Register a fault callback.

        Args:
            identifier: Unique name of this callback
            callback: ``callback(severity, message, source, file, line, trace) -> bool``
            priority: The order callbacks are executed in, highest first
        """
        self.registry.register(identifier, callback, priority)

    def unregister(self, identifier: str) -> None:
        self.registry.unregister(identifier)

    def get(self, identifier: str) -> Optional[HandlerEntry]:
        return self.registry.get(identifier)

    def is_registered(self, identifier: str) -> bool:
        return identifier in self.registry

    def identifiers(self) -> list[str]:
        return self.registry.identifiers()

    def set_priority(self, identifier: str, priority: int = DEFAULT_PRIORITY) -> FaultDispatcher:
        self.registry.set_priority(identifier, priority)
        return self

    def get_priority(self, identifier: str) -> Optional[int]:
        return self.registry.get_priority(identifier)

    # ========================================================================
    # Dispatch (Core Logic)
    # ========================================================================

    def dispatch(self, event: FaultEvent) -> bool:
        """
        Run an event through the callbacks in priority order.

        Stops at the first callback returning True. A callback that raises
        is reported through the fallback handler and skipped.

        Returns:
            Whether any callback handled the fault
        """
        if not event.severity:
            return False

        depth = getattr(self._local, "depth", 0)
        if depth:
            # A callback reported a fault of its own while dispatching.
            self.logger.debug(f"Nested fault during dispatch, showing via fallback: {event.message}")
            self._show(event)
            return False

        self._local.depth = depth + 1
        try:
            for entry in self.registry.sorted_view():
                try:
                    handled = entry.callback(*event.as_args())
                except Exception as e:
                    self.logger.error(
                        f"Fault callback '{entry.identifier}' raised exception: {e}",
                        exc_info=True,
                    )
                    self._show(event_from_exception(e, Severity.ERROR))
                    continue

                if handled:
                    self.logger.debug(f"Fault callback '{entry.identifier}' handled: {event.message}")
                    return True
        finally:
            self._local.depth = depth

        self.logger.debug(f"No callback handled fault: {event.message}")
        return False

    def handle_error(
        self,
        severity: int,
        message: str,
        source: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
        trace: Optional[str] = None,
    ) -> bool:
        """Dispatch a fault given in callback form."""
        return self.dispatch(FaultEvent(severity, message, source, file, line, trace))

    def _show(self, event: FaultEvent) -> None:
        try:
            self.fallback(*event.as_args())
        except Exception as e:
            self.logger.error(f"Fallback fault display failed: {e}", exc_info=True)

    # ========================================================================
    # Fault Adapters
    # ========================================================================

    def handle_recoverable(
        self,
        severity: int,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ) -> bool:
        """
        Dispatch a fault reported while execution can continue.

        Escalation to an exception is decided before this point
        (see ``EscalationPolicy``).
        """
        return self.dispatch(FaultEvent(severity, message, None, file, line))

    def catch_exception(self, exc: BaseException) -> bool:
        """
        Dispatch an uncaught exception.

        You are encouraged to send unrecoverable caught exceptions here as
        well, for uniform handling.
        """
        return self.dispatch(event_from_exception(exc))

    def catch_shutdown(self) -> bool:
        """
        Report the last recorded fault at process end.

        Returns:
            False, always: normal shutdown continues
        """
        last = self.recorder.last()
        if last is None:
            return False

        self.recorder.clear()
        trace = reconstruct(1, capture_frames(max_depth=self.config.trace_depth))

        self.handle_error(
            last.severity,
            last.message,
            "Shutdown",
            last.file if last.file is not None else "unknown",
            last.line if last.line is not None else "unknown",
            trace,
        )
        return False

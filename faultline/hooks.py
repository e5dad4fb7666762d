"""
faultline - Interpreter hook installation.

Connects a FaultDispatcher to the interpreter's native fault reporting:

- ``warnings.showwarning``  -> escalation policy, then the recoverable-fault adapter
- ``sys.excepthook``        -> uncaught-exception adapter
- ``threading.excepthook``  -> uncaught-exception adapter
- ``sys.unraisablehook``    -> uncaught-exception dispatch, recorded for the shutdown adapter
- ``atexit``                -> end-of-process adapter

Faults no callback handles are passed on to the hook that was installed
before, so the interpreter's default reporting still happens.
"""

from __future__ import annotations

import atexit
import logging
import sys
import threading
import warnings
from typing import Any, Optional

from .config import FaultsConfig
from .core import FaultEvent, FaultRecorder, severity_for_warning
from .engine import FaultDispatcher, event_from_exception
from .policy import EscalationPolicy


logger = logging.getLogger("faultline.hooks")


class FaultHooks:
    """
    Installs a dispatcher into the interpreter's fault hooks.

    Usage:
        ```python
        dispatcher = FaultDispatcher(config)
        hooks = FaultHooks(dispatcher, EscalationPolicy(config.error_reporting))
        hooks.install()
        ```
    """

    def __init__(
        self,
        dispatcher: FaultDispatcher,
        policy: Optional[EscalationPolicy] = None,
        recorder: Optional[FaultRecorder] = None,
    ):
        self.dispatcher = dispatcher
        # No escalation unless a policy is given.
        self.policy = policy or EscalationPolicy(0)
        self.recorder = recorder or dispatcher.recorder

        self.installed = False
        self._previous: dict[str, Any] = self._current_hooks()

    # ========================================================================
    # Installation
    # ========================================================================

    def install(self) -> FaultHooks:
        """Replace the interpreter's fault hooks. Safe to call twice."""
        if self.installed:
            return self

        self._previous = self._current_hooks()

        warnings.showwarning = self.showwarning
        sys.excepthook = self.excepthook
        threading.excepthook = self.threading_excepthook
        sys.unraisablehook = self.unraisablehook
        atexit.register(self.dispatcher.catch_shutdown)

        self.installed = True
        logger.debug("Fault hooks installed")
        return self

    @staticmethod
    def _current_hooks() -> dict[str, Any]:
        return {
            "showwarning": warnings.showwarning,
            "excepthook": sys.excepthook,
            "threading_excepthook": threading.excepthook,
            "unraisablehook": sys.unraisablehook,
        }

    def uninstall(self) -> None:
        """Restore the hooks found at install time."""
        if not self.installed:
            return

        warnings.showwarning = self._previous["showwarning"]
        sys.excepthook = self._previous["excepthook"]
        threading.excepthook = self._previous["threading_excepthook"]
        sys.unraisablehook = self._previous["unraisablehook"]
        atexit.unregister(self.dispatcher.catch_shutdown)

        self.installed = False
        logger.debug("Fault hooks uninstalled")

    def __enter__(self) -> FaultHooks:
        return self.install()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()

    # ========================================================================
    # Hooks
    # ========================================================================

    def showwarning(self, message, category, filename, lineno, file=None, line=None):
        """
        Recoverable faults.

        Raises:
            FaultError: If the escalation policy converts the warning
        """
        severity = severity_for_warning(category)
        text = str(message)

        self.policy.convert(severity, text, filename, lineno)

        if not self.dispatcher.handle_recoverable(severity, text, filename, lineno):
            previous = self._previous["showwarning"]
            previous(message, category, filename, lineno, file, line)

    def excepthook(self, exc_type, exc, tb):
        """Uncaught exceptions in the main thread."""
        if exc is None:
            exc = exc_type()
        if exc.__traceback__ is None and tb is not None:
            exc = exc.with_traceback(tb)

        if not self.dispatcher.catch_exception(exc):
            self._previous["excepthook"](exc_type, exc, tb)

    def threading_excepthook(self, args):
        """Uncaught exceptions in other threads."""
        if args.exc_type is SystemExit:
            return

        exc = args.exc_value if args.exc_value is not None else args.exc_type()
        if exc.__traceback__ is None and args.exc_traceback is not None:
            exc = exc.with_traceback(args.exc_traceback)

        if not self.dispatcher.catch_exception(exc):
            self._previous["threading_excepthook"](args)

    def unraisablehook(self, unraisable):
        """
        Exceptions the interpreter cannot raise (finalizers, __del__).

        Dispatched right away and also recorded for the end-of-process
        adapter.
        """
        exc = unraisable.exc_value
        if exc is None:
            return

        if exc.__traceback__ is None and unraisable.exc_traceback is not None:
            exc = exc.with_traceback(unraisable.exc_traceback)

        event = event_from_exception(exc)
        message = event.message
        if unraisable.err_msg:
            message = f"{unraisable.err_msg}: {message}" if message else unraisable.err_msg

        self.recorder.record(event.severity, message, event.file, event.line)
        logger.debug(f"Recorded unraisable exception: {message}")

        event = FaultEvent(event.severity, message, event.source, event.file, event.line, event.trace)
        if not self.dispatcher.dispatch(event):
            self._previous["unraisablehook"](unraisable)


def bootstrap(config: Optional[FaultsConfig] = None, *, install: bool = True) -> FaultHooks:
    """
    Build a dispatcher and hooks from a config.

    Args:
        config: Settings (defaults if None)
        install: Install the hooks right away

    Returns:
        The hooks; the dispatcher is ``hooks.dispatcher``
    """
    config = config or FaultsConfig()
    recorder = FaultRecorder()
    dispatcher = FaultDispatcher(config, recorder=recorder)
    hooks = FaultHooks(dispatcher, EscalationPolicy(config.error_reporting), recorder)

    if install:
        hooks.install()
    return hooks

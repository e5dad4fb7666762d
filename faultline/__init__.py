"""
faultline - Runtime fault interception and dispatch.

Faults reach an application through three different channels:
- recoverable faults (warnings) while execution continues
- exceptions nobody caught
- faults left behind when the process shuts down

faultline normalizes all three into one FaultEvent and runs it through a
prioritized set of callbacks (display, logging, alerting...), stopping at
the first callback that reports the fault as handled.

Core exports:
- FaultDispatcher: Registry + dispatch + fault adapters
- FaultHooks / bootstrap: Interpreter hook installation
- FaultEvent, Severity: Normalized fault data
- FaultHandler, DisplayHandler, LoggingHandler: Handlers
- EscalationPolicy, FaultError: Warning-to-exception escalation
- reconstruct: Stack trace reconstruction
"""

from .core import (
    Severity,
    FaultEvent,
    FaultCallback,
    HandlerEntry,
    FaultRecorder,
    RecordedFault,
    severity_name,
    severity_for_warning,
)

from .registry import HandlerRegistry, DEFAULT_PRIORITY

from .engine import (
    FaultDispatcher,
    event_from_exception,
    source_from_exception,
)

from .handlers import (
    FaultHandler,
    DisplayHandler,
    LoggingHandler,
    format_fault,
)

from .policy import EscalationPolicy, FaultError

from .hooks import FaultHooks, bootstrap

from .config import FaultsConfig, ConfigLoader, ConfigError, load_config

from .trace import reconstruct, reconstruct_exception

__version__ = "0.1.0"

__all__ = [
    # Core types
    "Severity",
    "FaultEvent",
    "FaultCallback",
    "HandlerEntry",
    "FaultRecorder",
    "RecordedFault",
    "severity_name",
    "severity_for_warning",

    # Runtime
    "HandlerRegistry",
    "DEFAULT_PRIORITY",
    "FaultDispatcher",
    "event_from_exception",
    "source_from_exception",
    "FaultHooks",
    "bootstrap",

    # Handlers
    "FaultHandler",
    "DisplayHandler",
    "LoggingHandler",
    "format_fault",

    # Escalation
    "EscalationPolicy",
    "FaultError",

    # Config
    "FaultsConfig",
    "ConfigLoader",
    "ConfigError",
    "load_config",

    # Traces
    "reconstruct",
    "reconstruct_exception",
]

"""
faultline - Handler registry.

Maps handler identifiers to (priority, callback) and keeps a lazily sorted
view of the entries, highest priority first. The sorted view is derived
data: every mutation that can change the order invalidates it.
"""

from __future__ import annotations

import inspect
import logging
from typing import Optional

from .core import FaultCallback, HandlerEntry


DEFAULT_PRIORITY = 10

logger = logging.getLogger("faultline.registry")


def sort_entries(entries) -> tuple[HandlerEntry, ...]:
    """Order entries by descending priority; ties keep their input order."""
    return tuple(sorted(entries, key=lambda entry: -entry.priority))


def check_callback(callback) -> None:
    """
    Verify a callback satisfies the handler contract.

    The callback must accept ``(severity, message, source, file, line, trace)``
    positionally.

    Raises:
        TypeError: If the callback is not callable or cannot take the arguments
    """
    if not callable(callback):
        raise TypeError(f"Fault callback must be callable, got {type(callback).__name__}")

    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        # Some builtins expose no signature; accept them as-is.
        return

    try:
        signature.bind(0, "", None, None, None, None)
    except TypeError as e:
        raise TypeError(
            f"Fault callback {getattr(callback, '__qualname__', callback)!r} must accept "
            f"(severity, message, source, file, line, trace): {e}"
        ) from None


def check_priority(priority) -> None:
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise TypeError(f"Handler priority must be an int, got {type(priority).__name__}")


class HandlerRegistry:
    """
    Registry of fault callbacks keyed by identifier.

    Re-registering an identifier replaces the entry. Dispatch order comes
    from ``sorted_view()``, never from insertion order.

    Example:
        ```python
        registry = HandlerRegistry()
        registry.register("mail", send_alert, priority=50)
        registry.register("log", log_fault)
        for entry in registry.sorted_view():
            ...
        ```
    """

    def __init__(self):
        self._entries: dict[str, HandlerEntry] = {}
        self._sorted: Optional[tuple[HandlerEntry, ...]] = None

    def register(
        self,
        identifier: str,
        callback: FaultCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """
        Register (or replace) a callback.

        Args:
            identifier: Unique name of this callback
            callback: Handler satisfying the FaultCallback contract
            priority: Execution order, highest first

        Raises:
            TypeError: If the callback or priority is malformed
        """
        check_callback(callback)
        check_priority(priority)

        self._entries[identifier] = HandlerEntry(identifier, priority, callback)
        self._sorted = None
        logger.debug(f"Registered fault callback '{identifier}' (priority={priority})")

    def unregister(self, identifier: str) -> None:
        """Remove a callback. Removing does not change the order of the rest."""
        if self._entries.pop(identifier, None) is None:
            return

        if self._sorted is not None:
            self._sorted = tuple(e for e in self._sorted if e.identifier != identifier)
        logger.debug(f"Unregistered fault callback '{identifier}'")

    def get(self, identifier: str) -> Optional[HandlerEntry]:
        return self._entries.get(identifier)

    def identifiers(self) -> list[str]:
        """Get a list of all registered identifiers."""
        return list(self._entries)

    def set_priority(self, identifier: str, priority: int = DEFAULT_PRIORITY) -> HandlerRegistry:
        """
        Change the priority of a registered callback.

        Unknown identifiers are ignored without error.
        """
        check_priority(priority)

        entry = self._entries.get(identifier)
        if entry is None:
            logger.debug(f"set_priority ignored for unknown callback '{identifier}'")
            return self

        self._entries[identifier] = HandlerEntry(identifier, priority, entry.callback)
        self._sorted = None
        return self

    def get_priority(self, identifier: str) -> Optional[int]:
        entry = self._entries.get(identifier)
        return entry.priority if entry is not None else None

    def sorted_view(self) -> tuple[HandlerEntry, ...]:
        """Entries by descending priority, recomputed only after a mutation."""
        if self._sorted is None:
            self._sorted = sort_entries(self._entries.values())
        return self._sorted

    def clear(self) -> None:
        self._entries.clear()
        self._sorted = None

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._entries

    def __len__(self) -> int:
        return len(self._entries)

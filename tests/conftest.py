"""
Shared test fixtures and helpers for the faultline test suite.
"""

import io

import pytest

from faultline import DisplayHandler, FaultDispatcher, FaultRecorder


class Recorder:
    """Callback that records every call and returns a fixed result."""

    def __init__(self, result=False, log=None, name=None):
        self.result = result
        self.calls = []
        self.log = log
        self.name = name

    def __call__(self, severity, message, source=None, file=None, line=None, trace=None):
        self.calls.append((severity, message, source, file, line, trace))
        if self.log is not None:
            self.log.append(self.name)
        return self.result


class Exploding:
    """Callback that always raises."""

    def __init__(self, message="handler exploded"):
        self.message = message
        self.calls = 0

    def __call__(self, severity, message, source=None, file=None, line=None, trace=None):
        self.calls += 1
        raise RuntimeError(self.message)


@pytest.fixture
def fallback_stream():
    return io.StringIO()


@pytest.fixture
def recorder():
    return FaultRecorder()


@pytest.fixture
def dispatcher(fallback_stream, recorder):
    """Dispatcher whose fallback display writes to a StringIO."""
    return FaultDispatcher(recorder=recorder, fallback=DisplayHandler(fallback_stream))

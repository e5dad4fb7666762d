"""
Handlers (faultline/handlers.py)

Tests FaultHandler, DisplayHandler and LoggingHandler.
"""

import io
import logging

import pytest

from faultline import FaultDispatcher, FaultEvent, Severity
from faultline.handlers import DisplayHandler, FaultHandler, LoggingHandler, format_fault


# ============================================================================
# FaultHandler (abstract)
# ============================================================================

class TestFaultHandler:

    def test_abstract(self):
        with pytest.raises(TypeError):
            FaultHandler()

    def test_callable_contract(self):
        seen = []

        class Claiming(FaultHandler):
            def handle(self, event):
                seen.append(event)
                return True

        handler = Claiming()
        assert handler(Severity.ERROR, "boom", "X::1", "a.py", 3, None) is True
        assert seen == [FaultEvent(Severity.ERROR, "boom", "X::1", "a.py", 3, None)]

    def test_registrable(self):
        class Declining(FaultHandler):
            def handle(self, event):
                return False

        dispatcher = FaultDispatcher()
        dispatcher.register("declining", Declining())
        assert dispatcher.handle_error(Severity.NOTICE, "n") is False


# ============================================================================
# DisplayHandler
# ============================================================================

class TestDisplayHandler:

    def test_format_full(self):
        event = FaultEvent(Severity.WARNING, "disk full", "OSError::28", "/app/io.py", 12, "#0 {main}")
        assert format_fault(event) == (
            "\nWarning OSError::28 disk full IN /app/io.py:12\n"
            "Stack trace:\n#0 {main}\n"
        )

    def test_format_missing_fields(self):
        assert format_fault(FaultEvent(Severity.NOTICE, "n")) == "\nNotice  n IN unknown:unknown\n"

    def test_writes_to_stream(self):
        stream = io.StringIO()
        handler = DisplayHandler(stream)
        result = handler(Severity.ERROR, "boom", "Shutdown", "a.py", 1, None)
        assert result is False
        assert stream.getvalue() == "\nError Shutdown boom IN a.py:1\n"

    def test_defaults_to_stdout(self, capsys):
        DisplayHandler()(Severity.DEPRECATED, "old api")
        assert "Deprecated  old api IN unknown:unknown" in capsys.readouterr().out


# ============================================================================
# LoggingHandler
# ============================================================================

class TestLoggingHandler:

    def test_logs_and_declines(self, caplog):
        handler = LoggingHandler(logging.getLogger("test.faults"))
        with caplog.at_level(logging.DEBUG, logger="test.faults"):
            assert handler(Severity.ERROR, "boom", "X::0", "a.py", 5) is False

        record = caplog.records[0]
        assert record.levelno == logging.ERROR
        assert "boom" in record.getMessage()
        assert "a.py:5" in record.getMessage()
        assert record.fault["severity_name"] == "Error"

    @pytest.mark.parametrize("severity,level", [
        (Severity.WARNING, logging.WARNING),
        (Severity.DEPRECATED, logging.INFO),
        (Severity.USER_NOTICE, logging.INFO),
        (12345, logging.WARNING),
    ])
    def test_levels(self, caplog, severity, level):
        handler = LoggingHandler(logging.getLogger("test.faults"))
        with caplog.at_level(logging.DEBUG, logger="test.faults"):
            handler(severity, "m")
        assert caplog.records[0].levelno == level

"""
Escalation policy (faultline/policy.py)

Tests EscalationPolicy and FaultError.
"""

import pytest

from faultline import EscalationPolicy, FaultError, Severity


class TestFaultError:

    def test_attributes(self):
        err = FaultError("bad", 3, Severity.WARNING, "a.py", 7)
        assert str(err) == "bad"
        assert err.code == 3
        assert err.severity == Severity.WARNING
        assert (err.file, err.line) == ("a.py", 7)

    def test_defaults(self):
        err = FaultError("bad")
        assert err.severity == Severity.ERROR
        assert err.code == 0
        assert err.file is None


class TestEscalationPolicy:

    def test_reported_severity_raises(self):
        policy = EscalationPolicy(Severity.ALL)
        with pytest.raises(FaultError) as info:
            policy.convert(Severity.WARNING, "disk full", "io.py", 4)
        assert info.value.severity == Severity.WARNING
        assert info.value.file == "io.py"
        assert info.value.line == 4

    def test_unreported_severity_passes(self):
        policy = EscalationPolicy(Severity.ALL & ~Severity.NOTICE)
        assert policy.convert(Severity.NOTICE, "n") is False

    @pytest.mark.parametrize("severity", [Severity.DEPRECATED, Severity.USER_DEPRECATED])
    def test_deprecations_never_raise(self, severity):
        policy = EscalationPolicy(Severity.ALL)
        assert policy.should_escalate(severity) is False
        assert policy.convert(severity, "old") is False

    def test_zero_mask_never_raises(self):
        policy = EscalationPolicy(0)
        for severity in Severity:
            assert policy.should_escalate(severity) is False

"""Tests for the value types in policy_assessment.core."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from policy_assessment.core.models import (SEVERITY_FLOOR, AuditResponse, OutcomeKind,
                                           Policy, ReportingPeriod, Severity)
from policy_assessment.core.target import Target


class TestSeverity:
    """Tests for severity parsing and labels."""

    @pytest.mark.parametrize("value,expected", [
        ("low", 1), ("NORMAL", 2), (" high ", 3), ("critical", 4),
        (3, 3), ("2", 2), (Severity.HIGH, 3), (7, 7),
    ])
    def test_parse(self, value, expected):
        """Test severity parsing."""
        assert Severity.parse(value) == expected

    @pytest.mark.parametrize("value", [0, -1, "0", "bogus"])
    def test_parse_invalid(self, value):
        """Test rejected severities."""
        with pytest.raises(ValueError):
            Severity.parse(value)

    def test_label(self):
        """Test severity labels."""
        assert Severity.label(3) == "high"
        assert Severity.label(9) == "9"

    def test_floor(self):
        """Test the severity floor."""
        assert SEVERITY_FLOOR == 1


class TestOutcomeKind:
    """Tests for outcome classification."""

    @pytest.mark.parametrize("kind", ["success", "warning", "notice", "not_applicable"])
    def test_successful_outcomes(self, kind):
        """Test successful outcomes."""
        assert OutcomeKind(kind).successful is True

    @pytest.mark.parametrize("kind", ["failure", "error", "irrelevant"])
    def test_unsuccessful_outcomes(self, kind):
        """Test unsuccessful outcomes."""
        assert OutcomeKind(kind).successful is False


class TestReportingPeriod:
    """Tests for ReportingPeriod."""

    def test_last(self):
        """Test the window ending at a given time."""
        end = datetime(2024, 3, 1, 12, 0)
        period = ReportingPeriod.last(hours=6, end=end)

        assert period.end == end
        assert period.start == end - timedelta(hours=6)
        assert period.duration == timedelta(hours=6)

    def test_end_before_start(self):
        """Test end before start."""
        with pytest.raises(ValidationError):
            ReportingPeriod(start=datetime(2024, 3, 2), end=datetime(2024, 3, 1))

    def test_frozen(self):
        """Test that periods are immutable."""
        period = ReportingPeriod.last()
        with pytest.raises(ValidationError):
            period.start = datetime.now()


class TestPolicy:
    """Tests for Policy."""

    def test_defaults(self):
        """Test default values."""
        policy = Policy(name="ssh-root", audit="always")

        assert policy.title == "ssh-root"
        assert policy.severity == Severity.NORMAL
        assert policy.parameters == {}

    def test_severity_by_name(self):
        """Test severity by name."""
        assert Policy(name="p", audit="always", severity="critical").severity == 4

    def test_invalid_severity(self):
        """Test invalid severity."""
        with pytest.raises(ValidationError):
            Policy(name="p", audit="always", severity=0)

    def test_empty_name(self):
        """Test empty name."""
        with pytest.raises(ValidationError):
            Policy(name="", audit="always")

    def test_equality_by_value(self):
        """Test equality by value."""
        assert Policy(name="p", audit="always") == Policy(name="p", audit="always")


class TestAuditResponse:
    """Tests for AuditResponse."""

    def setup_method(self):
        self.policy = Policy(name="p", audit="always", severity="high")

    def test_severity_defaults_to_policy(self):
        """Test severity defaults to policy."""
        response = AuditResponse(policy=self.policy, outcome="failure")

        assert response.severity == 3
        assert response.policy_name == "p"
        assert response.is_successful() is False

    def test_explicit_severity(self):
        """Test explicit severity."""
        response = AuditResponse(policy=self.policy, outcome=OutcomeKind.FAILURE, severity=1)
        assert response.severity == 1

    def test_irrelevant(self):
        """Test irrelevant responses."""
        response = AuditResponse(policy=self.policy, outcome="irrelevant")

        assert response.is_irrelevant() is True
        assert response.is_successful() is False

    def test_unknown_outcome(self):
        """Test unknown outcome."""
        with pytest.raises(ValidationError):
            AuditResponse(policy=self.policy, outcome="maybe")


class TestTarget:
    """Tests for Target property lookup."""

    def setup_method(self):
        self.target = Target(name="db", properties={"tls": {"enabled": True}, "a.b": 1})

    def test_dotted_lookup(self):
        """Test dotted lookup."""
        assert self.target.get("tls.enabled") is True
        assert self.target.has("tls.enabled")
        assert not self.target.has("tls.version")
        assert self.target.get("tls.version", "none") == "none"

    def test_literal_dotted_key(self):
        """Test literal dotted key."""
        assert self.target["a.b"] == 1

    def test_getitem_missing(self):
        """Test getitem missing."""
        with pytest.raises(KeyError):
            self.target["missing"]

    def test_set_uri(self):
        """Test setting the target uri."""
        assert self.target.set_uri("ssh://db").uri == "ssh://db"
        assert self.target.set_uri().uri == "default"

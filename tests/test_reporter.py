"""Tests for report generation."""

import csv
import io
import json

import pytest

from conftest import ScriptedDispatcher
from policy_assessment.core.assessment import Assessment
from policy_assessment.core.reporter import CSV_COLUMNS, ReportFormat, Reporter
from policy_assessment.utils.exceptions import ReportingError


@pytest.fixture
def assessment(target, mixed_policies):
    return Assessment("ssh://web-01").run(target, mixed_policies, dispatcher=ScriptedDispatcher())


class TestReporter:
    """Tests for Reporter."""

    def setup_method(self):
        self.reporter = Reporter()

    def test_json(self, assessment):
        """Test the JSON report."""
        data = json.loads(self.reporter.render(assessment, "json"))

        assert data["summary"]["successful"] is False
        assert data["summary"]["severity_code"] == 3
        assert data["summary"]["stats_by_severity"] == {"3": {"failure": 1}, "1": {"success": 1}}
        assert [r["policy"]["name"] for r in data["results"]] == ["P1", "P2"]
        assert data["reporting_period"]["start"] < data["reporting_period"]["end"]

    def test_csv(self, assessment):
        """Test the CSV report."""
        rows = list(csv.DictReader(io.StringIO(self.reporter.render(assessment, ReportFormat.CSV))))

        assert list(rows[0].keys()) == CSV_COLUMNS
        assert [(row["policy"], row["severity"], row["outcome"]) for row in rows] == [
            ("P1", "high", "failure"), ("P2", "low", "success"),
        ]

    def test_html(self, assessment):
        """Test the HTML report."""
        html = self.reporter.render(assessment, "HTML")

        assert "Assessment of ssh://web-01" in html
        assert "Unsuccessful" in html
        assert "outcome-failure" in html
        assert "P3" not in html

    def test_unsupported_format(self, assessment):
        """Test unsupported format."""
        with pytest.raises(ReportingError):
            self.reporter.render(assessment, "pdf")

    def test_missing_template(self, assessment, tmp_path):
        """Test missing template."""
        with pytest.raises(ReportingError):
            Reporter(template_dir=tmp_path).render(assessment, "html")

    def test_generate_report(self, assessment, tmp_path):
        """Test generate report."""
        path = self.reporter.generate_report(assessment, "csv", tmp_path / "out" / "report.csv")

        assert path == tmp_path / "out" / "report.csv"
        assert path.read_text().startswith(",".join(CSV_COLUMNS))

    def test_default_report_path(self, assessment, tmp_path):
        """Test default report path."""
        path = Reporter(report_dir=tmp_path).generate_report(assessment)

        assert path == tmp_path / f"assessment_{assessment.id}.json"
        assert path.exists()

"""Reporting utilities for assessments.

This module renders a finished assessment as JSON, CSV or HTML.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import jinja2

from policy_assessment.core.assessment import Assessment
from policy_assessment.core.models import Severity
from policy_assessment.utils.exceptions import ReportingError

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["policy", "title", "severity", "outcome", "remediated", "message", "timestamp"]


class ReportFormat(str, Enum):
    """Report formats."""

    JSON = "json"
    CSV = "csv"
    HTML = "html"


class Reporter:
    """Reporter for generating assessment reports."""

    def __init__(self, template_dir: Optional[Path] = None, report_dir: Optional[Path] = None):
        """Initialize the reporter.

        Args:
            template_dir: Directory containing report templates
            report_dir: Default directory for generated reports
        """
        self.template_dir = template_dir or Path(__file__).parent.parent / "templates"
        self.report_dir = report_dir
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.globals["severity_label"] = Severity.label
        logger.debug(f"Initialized reporter with template directory: {self.template_dir}")

    def render(self, assessment: Assessment, format: Union[str, ReportFormat] = "json") -> str:
        """Render an assessment report.

        Args:
            assessment: Assessment to report on
            format: Report format ('json', 'csv', 'html')

        Returns:
            Rendered report
        """
        report_format = self._parse_format(format)

        if report_format == ReportFormat.JSON:
            return self._render_json(assessment)
        elif report_format == ReportFormat.CSV:
            return self._render_csv(assessment)
        return self._render_html(assessment)

    def generate_report(
        self,
        assessment: Assessment,
        format: Union[str, ReportFormat] = "json",
        output_path: Optional[Path] = None,
    ) -> Path:
        """Write an assessment report to disk.

        Args:
            assessment: Assessment to report on
            format: Report format ('json', 'csv', 'html')
            output_path: Path to save the report to, or None for the report
                directory

        Returns:
            Path to the generated report
        """
        report_format = self._parse_format(format)
        report_path = self._get_output_path(assessment, report_format, output_path)
        content = self.render(assessment, report_format)

        try:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ReportingError(f"Could not write report to {report_path}: {e}") from e

        logger.info(f"Generated {report_format.value} report at {report_path}")
        return report_path

    @staticmethod
    def _parse_format(format: Union[str, ReportFormat]) -> ReportFormat:
        try:
            return ReportFormat(str(getattr(format, "value", format)).lower())
        except ValueError:
            raise ReportingError(f"Unsupported report format: {format}") from None

    def _get_output_path(self, assessment: Assessment, report_format: ReportFormat,
                         output_path: Optional[Path]) -> Path:
        if output_path:
            return Path(output_path)

        report_dir = self.report_dir or Path.home() / ".policy_assessment" / "reports"
        return Path(report_dir) / f"assessment_{assessment.id}.{report_format.value}"

    def _render_json(self, assessment: Assessment) -> str:
        data = {
            "summary": assessment.summary(),
            "reporting_period": (
                assessment.reporting_period.model_dump(mode="json")
                if assessment.reporting_period else None
            ),
            "results": [response.model_dump(mode="json") for response in assessment.get_results()],
        }
        return json.dumps(data, indent=2)

    def _render_csv(self, assessment: Assessment) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for response in assessment.get_results():
            writer.writerow({
                "policy": response.policy.name,
                "title": response.policy.title,
                "severity": Severity.label(response.severity),
                "outcome": response.outcome.value,
                "remediated": response.remediated,
                "message": response.message,
                "timestamp": response.timestamp.isoformat(),
            })
        return buffer.getvalue()

    def _render_html(self, assessment: Assessment) -> str:
        try:
            template = self.jinja_env.get_template("assessment.html")
        except jinja2.TemplateNotFound as e:
            raise ReportingError(f"Report template not found in {self.template_dir}") from e
        return template.render(assessment=assessment)

"""Built-in audits that evaluate target properties."""

from typing import Any, Dict

from ..core.models import AuditResponse, OutcomeKind, Policy
from .base import AuditOutcome, BaseAudit


class PropertyPresentAudit(BaseAudit):
    """Succeeds when the target has the property named by ``key``."""

    name = "property_present"
    description = "Target exposes a property"

    def audit(self, policy: Policy) -> AuditOutcome:
        key = self.get_parameter("key")
        if not key:
            raise ValueError("Parameter 'key' is required")

        if self.target.has(key):
            return OutcomeKind.SUCCESS
        return AuditResponse(
            policy=policy,
            outcome=OutcomeKind.FAILURE,
            message=f"Property '{key}' is not set on {self.target.uri}",
        )


class PropertyEqualsAudit(BaseAudit):
    """Compares the target property ``key`` with the parameter ``value``.

    A missing property is ``not_applicable`` unless ``required`` is set, in
    which case it fails. Setting ``irrelevant_if_missing`` drops the policy
    from the assessment instead.
    """

    name = "property_equals"
    description = "Target property equals an expected value"

    def audit(self, policy: Policy) -> AuditOutcome:
        key = self.get_parameter("key")
        if not key:
            raise ValueError("Parameter 'key' is required")
        expected = self.get_parameter("value")

        if not self.target.has(key):
            if self.get_parameter("irrelevant_if_missing", False):
                return OutcomeKind.IRRELEVANT
            if self.get_parameter("required", False):
                return self._response(policy, OutcomeKind.FAILURE, key, None, expected)
            return OutcomeKind.NOT_APPLICABLE

        actual = self.target[key]
        outcome = OutcomeKind.SUCCESS if actual == expected else OutcomeKind.FAILURE
        return self._response(policy, outcome, key, actual, expected)

    def remediate(self, policy: Policy) -> bool:
        if not self.get_parameter("remediable", False):
            return False
        self.target.properties[self.get_parameter("key")] = self.get_parameter("value")
        return True

    def _response(self, policy: Policy, outcome: OutcomeKind, key: str,
                  actual: Any, expected: Any) -> AuditResponse:
        details: Dict[str, Any] = {"key": key, "actual": actual, "expected": expected}
        message = "" if outcome is OutcomeKind.SUCCESS else f"{key} is {actual!r}, expected {expected!r}"
        return AuditResponse(policy=policy, outcome=outcome, message=message, details=details)


class AlwaysAudit(BaseAudit):
    """Returns the outcome named by the ``outcome`` parameter."""

    name = "always"
    description = "Fixed outcome, for smoke runs"

    def audit(self, policy: Policy) -> AuditOutcome:
        return OutcomeKind(self.get_parameter("outcome", OutcomeKind.SUCCESS.value))


BUILTIN_AUDITS = [PropertyPresentAudit, PropertyEqualsAudit, AlwaysAudit]

"""Base class for every audit that can execute a policy."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from ..core.models import AuditResponse, OutcomeKind, Policy
from ..core.target import Target

logger = logging.getLogger(__name__)

AuditOutcome = Union[OutcomeKind, AuditResponse]


class BaseAudit(ABC):
    """Base class for all audits.

    An audit is bound to exactly one target when it is built. The orchestrator
    checks that binding before dispatching anything.
    """

    name = "base"
    description = "Base audit"

    def __init__(self, target: Target):
        self._target = target
        self._parameters: Dict[str, Any] = {}
        self._logger = logger.getChild(self.name)
        self._executed = False
        self._last_response: Optional[AuditResponse] = None

    @property
    def target(self) -> Target:
        return self._target

    def set_parameter(self, key: str, value: Any) -> "BaseAudit":
        self._parameters[key] = value
        return self

    def get_parameter(self, key: str, default: Any = None) -> Any:
        return self._parameters.get(key, default)

    @abstractmethod
    def audit(self, policy: Policy) -> AuditOutcome:
        """
        Evaluate the policy against the target.

        Args:
            policy: Policy being executed; its parameters are already merged
                into this audit's parameters

        Returns:
            An outcome kind, or a complete AuditResponse
        """
        pass

    def supports_remediation(self) -> bool:
        return type(self).remediate is not BaseAudit.remediate

    def remediate(self, policy: Policy) -> bool:
        """
        Attempt to fix the target after a failed audit.

        Returns:
            True when the remediation was applied
        """
        return False

    def execute(self, policy: Policy, remediate: bool = False) -> AuditResponse:
        """
        Run the audit with error handling.

        Exceptions raised by the audit become ``error`` responses.

        Args:
            policy: Policy to execute
            remediate: Attempt remediation when the audit is unsuccessful

        Returns:
            Response for the policy
        """
        self._logger.debug(f"Executing policy: {policy.name}")
        for key, value in policy.parameters.items():
            self._parameters.setdefault(key, value)

        response = self._evaluate(policy)

        if remediate and not response.is_successful() and not response.is_irrelevant():
            response = self._remediate(policy, response)

        self._executed = True
        self._last_response = response
        self._logger.debug(f"Policy {policy.name} completed with outcome: {response.outcome.value}")
        return response

    def _evaluate(self, policy: Policy) -> AuditResponse:
        try:
            outcome = self.audit(policy)
            if isinstance(outcome, AuditResponse):
                return outcome
            return AuditResponse(policy=policy, outcome=OutcomeKind(outcome))
        except Exception as e:
            self._logger.error(f"Error executing policy {policy.name}: {e}")
            return AuditResponse(
                policy=policy,
                outcome=OutcomeKind.ERROR,
                message=f"Error executing audit: {e}",
                details={"error_type": type(e).__name__},
            )

    def _remediate(self, policy: Policy, response: AuditResponse) -> AuditResponse:
        if not self.supports_remediation():
            self._logger.debug(f"Audit {self.name} does not support remediation")
            return response

        try:
            applied = self.remediate(policy)
        except Exception as e:
            self._logger.error(f"Remediation of {policy.name} failed: {e}")
            return response

        if not applied:
            return response

        remediated = self._evaluate(policy)
        return remediated.model_copy(update={"remediated": True})

    def get_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "target": self._target.name,
            "remediation": self.supports_remediation(),
            "executed": self._executed,
            "last_outcome": self._last_response.outcome.value if self._last_response else None,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', target='{self._target.name}')"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', executed={self._executed})"

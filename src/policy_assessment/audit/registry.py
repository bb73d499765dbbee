"""Registry mapping audit names to audit classes."""

import logging
from typing import Any, Dict, List, Type

from ..core.models import Policy
from ..core.target import Target
from ..utils.exceptions import AuditNotFound
from .base import BaseAudit

logger = logging.getLogger(__name__)


class AuditRegistry:
    """Central registry of audit classes."""

    def __init__(self):
        self._audits: Dict[str, Type[BaseAudit]] = {}
        logger.debug("AuditRegistry initialized")

    def register(self, name: str, audit_class: Type[BaseAudit]) -> None:
        """
        Register an audit class under a name.

        Args:
            name: Name policies use to reference the audit
            audit_class: Class implementing BaseAudit
        """
        if not (isinstance(audit_class, type) and issubclass(audit_class, BaseAudit)):
            raise TypeError(f"{audit_class!r} is not a BaseAudit subclass")

        if name in self._audits and self._audits[name] is not audit_class:
            logger.warning(f"Audit {name} already registered, overwriting")

        self._audits[name] = audit_class

    def get(self, name: str) -> Type[BaseAudit]:
        """
        Return the audit class registered under a name.

        Raises:
            AuditNotFound: If nothing is registered under the name
        """
        try:
            return self._audits[name]
        except KeyError:
            raise AuditNotFound(f"Audit '{name}' is not registered") from None

    def create(self, policy: Policy, target: Target) -> BaseAudit:
        """
        Build the audit that executes a policy against a target.

        Args:
            policy: Policy whose ``audit`` names the audit class
            target: Target the audit is bound to

        Returns:
            Audit instance bound to the target
        """
        return self.get(policy.audit)(target)

    def names(self) -> List[str]:
        return sorted(self._audits)

    def get_registry_info(self) -> Dict[str, Any]:
        return {
            "total_audits": len(self._audits),
            "available_audits": [
                {
                    "name": name,
                    "class": audit_class.__name__,
                    "description": audit_class.description,
                }
                for name, audit_class in sorted(self._audits.items())
            ],
        }

    def clear(self) -> None:
        self._audits.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._audits

    def __len__(self) -> int:
        return len(self._audits)

    def __str__(self) -> str:
        return f"AuditRegistry({len(self._audits)} audits)"

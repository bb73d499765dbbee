"""Audits executed by policies.

- base: BaseAudit, the runner abstraction every audit implements
- registry: AuditRegistry, mapping the audit names policies reference
- builtin: audits evaluating target properties
"""

from .base import BaseAudit
from .builtin import BUILTIN_AUDITS, AlwaysAudit, PropertyEqualsAudit, PropertyPresentAudit
from .registry import AuditRegistry

# Global audit registry
registry = AuditRegistry()


def _register_builtin_audits() -> None:
    for audit_class in BUILTIN_AUDITS:
        registry.register(audit_class.name, audit_class)


_register_builtin_audits()

__all__ = [
    "BaseAudit",
    "AuditRegistry",
    "registry",
    "AlwaysAudit",
    "PropertyEqualsAudit",
    "PropertyPresentAudit",
]

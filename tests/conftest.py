"""Shared fixtures for the policy assessment tests."""

from typing import Any, Callable, List, Optional

import pytest

from policy_assessment.core.models import Policy
from policy_assessment.core.target import Target
from policy_assessment.utils.exceptions import DispatcherFault


class ScriptedDispatcher:
    """Dispatcher running units inline and delivering them in a chosen order.

    ``order`` lists labels in delivery order (default: submission order).
    With ``fault_after`` set, the drain raises a DispatcherFault once that
    many responses have been delivered.
    """

    def __init__(self, order: Optional[List[str]] = None,
                 fault_after: Optional[int] = None,
                 fault_code: int = DispatcherFault.UNIT_CRASHED):
        self.order = order
        self.fault_after = fault_after
        self.fault_code = fault_code
        self.submitted: List[str] = []
        self._units = {}
        self._payload_count = 0

    @property
    def payload_count(self) -> int:
        return self._payload_count

    def submit(self, unit: Callable[[], Any], label: str) -> None:
        self.submitted.append(label)
        self._units[label] = unit

    def drain(self, callback: Callable[[Any], None]) -> int:
        for label in self.order or self.submitted:
            if self.fault_after is not None and self._payload_count >= self.fault_after:
                raise DispatcherFault(f"Scripted fault before {label}",
                                      code=self.fault_code, delivered=self._payload_count)
            callback(self._units[label]())
            self._payload_count += 1
        return self._payload_count


def make_policy(name: str, outcome: str = "success", severity: int = 2, **kwargs) -> Policy:
    """Policy executed by the ``always`` audit with a fixed outcome."""
    return Policy(name=name, severity=severity, audit="always",
                  parameters={"outcome": outcome}, **kwargs)


@pytest.fixture
def target():
    return Target(name="web-01", uri="ssh://web-01", properties={"tls": {"enabled": True}, "port": 443})


@pytest.fixture
def mixed_policies():
    """P1 fails at severity 3, P2 succeeds at severity 1, P3 is irrelevant."""
    return [
        make_policy("P1", "failure", 3),
        make_policy("P2", "success", 1),
        make_policy("P3", "irrelevant", 2),
    ]


@pytest.fixture
def profile_file(tmp_path):
    path = tmp_path / "baseline.yaml"
    path.write_text(
        "policies:\n"
        "  - name: tls-enabled\n"
        "    title: TLS is enabled\n"
        "    severity: high\n"
        "    audit: property_equals\n"
        "    parameters:\n"
        "      key: tls.enabled\n"
        "      value: true\n"
        "  - name: port-set\n"
        "    audit: property_present\n"
        "    severity: 1\n"
        "    parameters:\n"
        "      key: port\n",
        encoding="utf-8",
    )
    return path

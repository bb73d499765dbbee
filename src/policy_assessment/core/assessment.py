"""Assessment of a target against an ordered set of policies."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from functools import partial
from typing import (TYPE_CHECKING, Any, Callable, Dict, Iterable, List,
                    Optional, Protocol)

from ..utils.exceptions import (AuditResponseNotFound, DispatcherFault,
                                TargetMismatch)
from .dispatcher import Dispatcher, DispatcherProtocol
from .models import SEVERITY_FLOOR, AuditResponse, Policy, ReportingPeriod
from .snapshot import AssessmentSnapshot
from .target import Target

if TYPE_CHECKING:
    from ..audit.base import BaseAudit

Listener = Callable[[AuditResponse], None]


class AuditResolver(Protocol):
    """Builds the audit that executes a policy."""

    def create(self, policy: Policy, target: Target) -> "BaseAudit": ...


def execute_policy(audit: "BaseAudit", policy: Policy, remediate: bool) -> AuditResponse:
    """Unit of work submitted to the dispatcher for one policy."""
    return audit.execute(policy, remediate)


class Assessment:
    """Aggregated result of running policies against one target.

    An assessment runs once. Completed audits are aggregated on the single
    consumer thread of the dispatcher, so no locking is needed; the exposed
    result order is always the dispatch order.
    """

    def __init__(
        self,
        uri: str = "default",
        *,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        audit_registry: Optional[AuditResolver] = None,
        listener: Optional[Listener] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize a new assessment.

        Args:
            uri: Identifies the assessed target
            id_factory: Generates the assessment id
            audit_registry: Resolves policies to audits; defaults to the
                global audit registry
            listener: Called with every response the dispatcher delivers,
                irrelevant ones included
            logger: Logger for the run; defaults to the module logger
        """
        self.uri = uri
        self.id: uuid.UUID = id_factory()
        self.reporting_period: Optional[ReportingPeriod] = None
        self.policy_order: List[str] = []
        self.accepted_count = 0
        self.total = 0

        self._results: Dict[str, AuditResponse] = {}
        self._successful = True
        self._severity_code = SEVERITY_FLOOR
        self._error_code: Optional[int] = None
        self._stats_by_result: Dict[str, int] = defaultdict(int)
        self._stats_by_severity: Dict[int, Dict[str, int]] = defaultdict(lambda: defaultdict(int))

        self._audit_registry = audit_registry
        self._listener = listener
        self._logger = logger or logging.getLogger(__name__)

    def _resolver(self) -> AuditResolver:
        if self._audit_registry is None:
            from ..audit import registry
            self._audit_registry = registry
        return self._audit_registry

    def set_uri(self, uri: str = "default") -> "Assessment":
        self.uri = uri
        return self

    def run(
        self,
        target: Target,
        policies: Iterable[Policy],
        period: Optional[ReportingPeriod] = None,
        remediate: bool = False,
        dispatcher: Optional[DispatcherProtocol] = None,
    ) -> "Assessment":
        """
        Assess a target.

        Every audit is resolved and checked before anything is submitted, so a
        target mismatch leaves the assessment untouched. A dispatcher fault
        does not propagate: the assessment is marked unsuccessful and keeps
        whatever was aggregated before the fault.

        Args:
            target: Target every audit must be bound to
            policies: Policies to run, in the order results are exposed
            period: Reporting period; defaults to the last 24 hours
            remediate: Let audits remediate unsuccessful policies
            dispatcher: Dispatcher running the units; a thread dispatcher is
                created when omitted

        Returns:
            The assessment itself

        Raises:
            TargetMismatch: If a policy resolves to an audit bound to another
                target
        """
        period = period or ReportingPeriod.last()

        accepted: List[Policy] = []
        for policy in policies:
            if isinstance(policy, Policy):
                accepted.append(policy)
            else:
                self._logger.warning(f"Ignoring {policy!r}: not a Policy")

        units = []
        for policy in accepted:
            audit = self._resolver().create(policy, target)
            audit.set_parameter("reporting_period_start", period.start) \
                 .set_parameter("reporting_period_end", period.end)
            if audit.target is not target:
                raise TargetMismatch(
                    policy.name, "Audit target not the same as assessment target."
                )
            units.append((policy, audit))

        # Record the reporting period so it can be pulled when rendering.
        self.reporting_period = period
        target.set_uri(self.uri)

        owns_dispatcher = dispatcher is None
        if dispatcher is None:
            dispatcher = Dispatcher()

        self.total = len(units)
        try:
            for policy, audit in units:
                self.policy_order.append(policy.name)
                self._logger.info(f"Assessing '{policy.name}' against {self.uri}")
                dispatcher.submit(partial(execute_policy, audit, policy, remediate), policy.name)

            returned = dispatcher.drain(self._receive)
        except DispatcherFault as e:
            self._logger.error(str(e))
            self._apply_fault(e.code)
            returned = dispatcher.payload_count
        finally:
            if owns_dispatcher:
                dispatcher.shutdown()

        self.accepted_count = returned
        self._logger.info(f"Assessment returned {returned}/{self.total} from the dispatcher.")
        return self

    def _receive(self, response: AuditResponse) -> None:
        if self._listener is not None:
            try:
                self._listener(response)
            except Exception as e:
                self._logger.error(f"Listener failed on {response.policy_name}: {e}", exc_info=True)

        self._logger.info(
            f'Policy "{response.policy.title}" assessment on {self.uri} '
            f'completed: {response.outcome.value}.'
        )

        if response.is_irrelevant():
            self._logger.info(f"Omitting policy result from assessment: {response.policy_name}")
            return
        self.record_result(response)

    def _apply_fault(self, code: int) -> None:
        self._successful = False
        self._error_code = code

    def record_result(self, response: AuditResponse) -> None:
        """
        Set the result of a policy.

        The result of a policy is unique to an assessment, but the statistics
        are not: recording the same policy twice counts it twice.

        Args:
            response: Response to record
        """
        self._results[response.policy_name] = response

        # Considered a success only if all policies pass.
        self._successful = self._successful and response.is_successful()

        if not response.is_successful() and self._severity_code < response.severity:
            self._severity_code = response.severity

        kind = response.outcome.value
        self._stats_by_result[kind] += 1
        self._stats_by_severity[response.severity][kind] += 1

    def get_result(self, name: str) -> AuditResponse:
        """
        Get a response by policy name.

        Raises:
            AuditResponseNotFound: If the policy has no recorded response
        """
        try:
            return self._results[name]
        except KeyError:
            raise AuditResponseNotFound(name, self._results.keys()) from None

    def get_results(self) -> List[AuditResponse]:
        """Responses in dispatch order, skipping policies without a result."""
        return [self._results[name] for name in self.policy_order if name in self._results]

    def has_result(self, name: str) -> bool:
        return name in self._results

    def is_successful(self) -> bool:
        return self._successful

    @property
    def severity_code(self) -> int:
        return self._severity_code

    @property
    def error_code(self) -> Optional[int]:
        return self._error_code

    @property
    def stats_by_result(self) -> Dict[str, int]:
        return dict(self._stats_by_result)

    @property
    def stats_by_severity(self) -> Dict[int, Dict[str, int]]:
        return {severity: dict(kinds) for severity, kinds in self._stats_by_severity.items()}

    def to_snapshot(self) -> AssessmentSnapshot:
        """Snapshot of the assessment, results in dispatch order.

        The snapshot holds copies of the responses.
        """
        seen = set()
        results = []
        for name in self.policy_order:
            if name in self._results and name not in seen:
                seen.add(name)
                results.append(self._results[name].model_copy(deep=True))

        return AssessmentSnapshot(
            uri=self.uri,
            id=self.id,
            results=results,
            policy_order=list(self.policy_order),
            successful=self._successful,
            error_code=self._error_code,
            reporting_period=self.reporting_period,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: AssessmentSnapshot,
        *,
        audit_registry: Optional[AuditResolver] = None,
        listener: Optional[Listener] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "Assessment":
        """
        Rebuild an assessment without re-running any audit.

        Success, severity and statistics are recomputed by replaying the stored
        responses; a stored error code is re-applied as a fault. The stored
        ``successful`` flag is only compared against the replay.

        Args:
            snapshot: Snapshot to rebuild from
            audit_registry: Resolver used if the assessment is run again
            listener: Response listener for the rebuilt assessment
            logger: Logger for the rebuilt assessment

        Returns:
            Rebuilt assessment
        """
        assessment = cls(
            snapshot.uri,
            id_factory=lambda: snapshot.id,
            audit_registry=audit_registry,
            listener=listener,
            logger=logger,
        )
        assessment.policy_order = list(snapshot.policy_order)
        assessment.reporting_period = snapshot.reporting_period

        for response in snapshot.results:
            assessment.record_result(response)

        if snapshot.error_code is not None:
            assessment._apply_fault(snapshot.error_code)

        if snapshot.successful != assessment._successful:
            assessment._logger.warning(
                f"Snapshot {snapshot.id} stored successful={snapshot.successful} but its "
                f"results replay to successful={assessment._successful}; using the replay."
            )

        assessment.accepted_count = len(snapshot.results)
        assessment.total = len(snapshot.policy_order)
        return assessment

    def export(self) -> Dict[str, Any]:
        """JSON-compatible export of the assessment."""
        return self.to_snapshot().to_dict()

    @classmethod
    def from_export(cls, data: Dict[str, Any], **kwargs: Any) -> "Assessment":
        """Rebuild an assessment from :meth:`export` output."""
        return cls.from_snapshot(AssessmentSnapshot.model_validate(data), **kwargs)

    def summary(self) -> Dict[str, Any]:
        """Headline figures of the assessment."""
        return {
            "uri": self.uri,
            "id": str(self.id),
            "successful": self._successful,
            "severity_code": self._severity_code,
            "error_code": self._error_code,
            "accepted": self.accepted_count,
            "total": self.total,
            "stats_by_result": self.stats_by_result,
            "stats_by_severity": self.stats_by_severity,
        }

    def __str__(self) -> str:
        return f"Assessment(uri='{self.uri}', successful={self._successful})"

    def __repr__(self) -> str:
        return (f"Assessment(uri='{self.uri}', id='{self.id}', "
                f"results={len(self._results)}, policies={len(self.policy_order)})")

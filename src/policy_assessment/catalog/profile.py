"""Policy sources.

A profile source provides policy definitions. Several sources can be merged;
when two define the same policy, the source with the higher weight wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

import yaml
from pydantic import ValidationError

from ..core.models import Policy
from ..utils.exceptions import CatalogError

logger = logging.getLogger(__name__)


class ProfileSource(Protocol):
    """Provides policies to assess."""

    name: str
    weight: int

    def list_policies(self) -> List[Policy]: ...

    def load(self, name: str) -> Policy: ...


class YamlProfileSource:
    """Policies read from a YAML profile.

    The document holds a ``policies`` list; each entry has ``name``,
    ``audit`` and optionally ``title``, ``severity``, ``parameters`` and
    ``description``.
    """

    def __init__(self, path: Union[str, Path], weight: int = 0, name: Optional[str] = None):
        self.path = Path(path)
        self.weight = weight
        self.name = name or self.path.stem
        self._policies: Optional[Dict[str, Policy]] = None

    def _read(self) -> Dict[str, Policy]:
        if self._policies is not None:
            return self._policies

        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = yaml.safe_load(f) or {}
        except OSError as e:
            raise CatalogError(f"Cannot read profile {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise CatalogError(f"Invalid YAML in profile {self.path}: {e}") from e

        entries = document.get("policies") if isinstance(document, dict) else None
        if not isinstance(entries, list):
            raise CatalogError(f"Profile {self.path} must contain a 'policies' list")

        policies: Dict[str, Policy] = {}
        for index, entry in enumerate(entries):
            policy = self._parse(entry, index)
            if policy.name in policies:
                logger.warning(f"Policy {policy.name} defined twice in {self.path}, keeping the last")
            policies[policy.name] = policy

        self._policies = policies
        logger.debug(f"Loaded {len(policies)} policies from {self.path}")
        return policies

    def _parse(self, entry: Any, index: int) -> Policy:
        if not isinstance(entry, dict):
            raise CatalogError(f"Policy #{index} in {self.path} must be a mapping")
        try:
            return Policy(**entry)
        except (ValidationError, TypeError) as e:
            raise CatalogError(f"Invalid policy #{index} in {self.path}: {e}") from e

    def list_policies(self) -> List[Policy]:
        return list(self._read().values())

    def load(self, name: str) -> Policy:
        try:
            return self._read()[name]
        except KeyError:
            raise CatalogError(f"Policy '{name}' not found in {self.path}") from None

    def __repr__(self) -> str:
        return f"YamlProfileSource(path='{self.path}', weight={self.weight})"


def load_policies(sources: Iterable[ProfileSource], names: Optional[Iterable[str]] = None) -> List[Policy]:
    """Merge policies from several sources.

    Args:
        sources: Profile sources to merge
        names: Policies to return, in this order; None returns every policy in
            source order

    Returns:
        The selected policies

    Raises:
        CatalogError: If a requested policy is defined by no source
    """
    ordered = sorted(sources, key=lambda source: source.weight)

    merged: Dict[str, Policy] = {}
    for source in ordered:
        for policy in source.list_policies():
            if policy.name in merged and merged[policy.name] != policy:
                logger.debug(f"Policy {policy.name} overridden by source {source.name}")
            merged[policy.name] = policy

    if names is None:
        return list(merged.values())

    names = list(names)
    missing = [name for name in names if name not in merged]
    if missing:
        raise CatalogError(f"Unknown policies: {', '.join(missing)}")
    return [merged[name] for name in names]

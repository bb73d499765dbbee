"""Target system for assessment."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field

_MISSING = object()


class Target(BaseModel):
    """Target system for assessment.

    Audits read target facts through property lookup. The orchestrator only
    compares targets by identity.
    """

    name: str = Field(default="default")
    uri: str = Field(default="default")
    properties: Dict[str, Any] = Field(default_factory=dict)

    def set_uri(self, uri: str = "default") -> "Target":
        self.uri = uri
        return self

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a property, supporting dotted keys into nested mappings."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def has(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def _lookup(self, key: str) -> Any:
        if key in self.properties:
            return self.properties[key]

        value: Any = self.properties
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return _MISSING
            value = value[part]
        return value

    def __str__(self) -> str:
        return f"Target(name='{self.name}', uri='{self.uri}')"

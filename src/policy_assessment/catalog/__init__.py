"""Policy catalog: where policies come from."""

from .profile import ProfileSource, YamlProfileSource, load_policies

__all__ = ["ProfileSource", "YamlProfileSource", "load_policies"]

"""Configuration package for the interview feedback service."""
from .policy import InvocationPolicy, LlmRoute, build_policy, is_loopback, probe_local_accelerator
from .settings import Settings, settings

__all__ = [
    "InvocationPolicy",
    "LlmRoute",
    "build_policy",
    "is_loopback",
    "probe_local_accelerator",
    "Settings",
    "settings",
]

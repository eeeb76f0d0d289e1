"""Release hosting backends."""

from .base import HostAuthError, HostError, ReleaseHost, TransientHostError
from .github import GitHubReleaseHost
from .memory import InMemoryReleaseHost

__all__ = [
    "GitHubReleaseHost",
    "HostAuthError",
    "HostError",
    "InMemoryReleaseHost",
    "ReleaseHost",
    "TransientHostError",
]

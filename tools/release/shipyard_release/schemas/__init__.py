"""Schema exports for shipyard-release."""

from .release import Release, ReleaseAsset

__all__ = ["Release", "ReleaseAsset"]

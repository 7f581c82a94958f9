"""pushdeploy commands."""

from .cleanup import CleanupCommand
from .deploy import DeployCommand

__all__ = [
    "CleanupCommand",
    "DeployCommand",
]

"""
pushdeploy Domain Models

Dataclass-based models for type-safe data handling.
"""

from .results import (
    ContainerInfo,
    ExecutionResult,
    LaunchResult,
    SSHResult,
    ValidationReport,
)
from .deployment import (
    AppManifest,
    ContainerIdentity,
    DeploymentTarget,
    GitCredentials,
    ManifestMode,
    ProxyRoute,
    ServiceRequirement,
)
from .ssh import (
    SSHConfig,
    SSHConnection,
)

__all__ = [
    # Results
    "ContainerInfo",
    "ExecutionResult",
    "LaunchResult",
    "SSHResult",
    "ValidationReport",
    # Deployment
    "AppManifest",
    "ContainerIdentity",
    "DeploymentTarget",
    "GitCredentials",
    "ManifestMode",
    "ProxyRoute",
    "ServiceRequirement",
    # SSH
    "SSHConfig",
    "SSHConnection",
]

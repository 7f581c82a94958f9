"""
pushdeploy Services

One service per deployment stage, each driven through the remote executor.
"""

from .container_service import ContainerService
from .git_service import GitService
from .manifest_service import ManifestService
from .provision_service import ProvisionService
from .proxy_service import ProxyService
from .ssh_service import SSHService
from .sync_service import SyncService
from .validation_service import ValidationService

__all__ = [
    "ContainerService",
    "GitService",
    "ManifestService",
    "ProvisionService",
    "ProxyService",
    "SSHService",
    "SyncService",
    "ValidationService",
]

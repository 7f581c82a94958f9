"""Manifest detection: decide how the working copy is started."""

from pathlib import Path

import yaml

from pushdeploy.constants import COMPOSE_FILES, DOCKERFILE
from pushdeploy.exceptions import DeployError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.deployment import AppManifest, ManifestMode


class ManifestService:
    """Inspects the local working copy for a compose file or Dockerfile."""

    def __init__(self, logger: DeployLogger):
        self.logger = logger

    def detect(self, local_path: Path) -> AppManifest:
        """
        Select exactly one start mode for the project root.

        A compose file wins over a Dockerfile, since compose projects usually
        ship a Dockerfile for their own build.

        Raises:
            DeployError: If neither manifest exists or the compose file is unusable
        """
        local_path = Path(local_path)

        for compose_file in COMPOSE_FILES:
            compose_path = local_path / compose_file
            if compose_path.is_file():
                services = self._compose_services(compose_path)
                self.logger.log(
                    f"Found {compose_file} (services: {', '.join(services)})"
                )
                return AppManifest(
                    mode=ManifestMode.COMPOSE,
                    compose_file=compose_file,
                    services=services,
                )

        if (local_path / DOCKERFILE).is_file():
            self.logger.log(f"Found {DOCKERFILE}")
            return AppManifest(mode=ManifestMode.SINGLE_CONTAINER, build_context=".")

        raise DeployError(
            f"No {DOCKERFILE} or docker-compose.yml found in {local_path}",
            context="The repository root must contain one of: "
            + ", ".join([DOCKERFILE, *COMPOSE_FILES]),
        )

    @staticmethod
    def _compose_services(compose_path: Path) -> list[str]:
        try:
            with open(compose_path, "r") as f:
                payload = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DeployError(f"{compose_path.name} is not valid YAML", context=str(e))

        services = payload.get("services") if isinstance(payload, dict) else None
        if not isinstance(services, dict) or not services:
            raise DeployError(f"{compose_path.name} declares no services")
        return [str(name) for name in services]

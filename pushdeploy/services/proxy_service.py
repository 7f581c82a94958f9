"""
Proxy service.

Installs, replaces and removes the Nginx reverse-proxy route that forwards
public HTTP traffic to the application's loopback port.
"""

import posixpath
from dataclasses import dataclass
from typing import List, Optional

from jinja2 import Template

from pushdeploy.constants import (
    NGINX_CONF_D,
    NGINX_DEFAULT_SITE,
    NGINX_SITES_AVAILABLE,
    NGINX_SITES_ENABLED,
    PROXY_READ_TIMEOUT,
)
from pushdeploy.exceptions import ProxyError
from pushdeploy.logger import DeployLogger
from pushdeploy.models.deployment import ProxyRoute
from pushdeploy.models.results import SSHResult
from pushdeploy.services.ssh_service import SSHService
from pushdeploy.utils import sh, tail_text

SERVER_BLOCK_TEMPLATE = Template(
    """# Managed by pushdeploy: {{ name }}
server {
    listen {{ public_port }};
    server_name _;

    location / {
        proxy_pass http://{{ upstream }};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_read_timeout {{ read_timeout }};
        proxy_connect_timeout 5s;
    }
}
"""
)

RELOAD_SCRIPT = "sudo systemctl reload nginx 2>/dev/null || sudo nginx -s reload"
# Dangling symlinks count as present
PATH_PRESENT_SCRIPT = 'test -e "$1" || test -L "$1"'
# Re-enable the distribution default site once no enabled site remains
RESTORE_DEFAULT_SCRIPT = (
    'if [ -z "$(ls -A "$1")" ] && [ -e "$2" ]; then '
    'sudo ln -sfn "$2" "$1/$3"; fi'
)


def render_server_block(route: ProxyRoute) -> str:
    """Render the Nginx server block for *route*."""
    return SERVER_BLOCK_TEMPLATE.render(
        name=route.name,
        public_port=route.public_port,
        upstream=route.upstream,
        read_timeout=PROXY_READ_TIMEOUT,
    )


@dataclass(frozen=True)
class RouteLocation:
    """Where a route's definition and its enabled reference live."""

    definition: str
    enabled: Optional[str] = None

    @property
    def paths(self) -> List[str]:
        return [p for p in (self.enabled, self.definition) if p]


class ProxyService:
    """
    Manages one Nginx route per deployment name.

    Debian-style hosts keep the definition in sites-available and enable it
    with a symlink in sites-enabled. Other hosts use conf.d, where the file
    itself is the enabled route.
    """

    def __init__(self, ssh: SSHService, logger: DeployLogger):
        self.ssh = ssh
        self.logger = logger
        self._debian_layout: Optional[bool] = None

    @property
    def debian_layout(self) -> bool:
        if self._debian_layout is None:
            self._debian_layout = self.ssh.run_quiet(["test", "-d", NGINX_SITES_ENABLED])
            self.logger.debug(
                "Nginx layout: "
                + ("sites-available/sites-enabled" if self._debian_layout else "conf.d")
            )
        return self._debian_layout

    def location_for(self, route: ProxyRoute) -> RouteLocation:
        if self.debian_layout:
            return RouteLocation(
                definition=posixpath.join(NGINX_SITES_AVAILABLE, route.name),
                enabled=posixpath.join(NGINX_SITES_ENABLED, route.name),
            )
        return RouteLocation(definition=posixpath.join(NGINX_CONF_D, f"{route.name}.conf"))

    def configure(self, route: ProxyRoute) -> RouteLocation:
        """
        Install or replace the route for *route.name* and reload Nginx.

        The definition is written to a temporary sibling and renamed into
        place, so a concurrent reload never sees a half-written file. On
        Debian-style hosts the distribution default site is disabled so it
        cannot claim the public port; remove() re-enables it when no other
        site is left enabled.

        Raises:
            ProxyError: If writing, validating or reloading fails
        """
        if route.internal_port is None:
            raise ProxyError("An internal port is required to configure the proxy")

        location = self.location_for(route)
        content = render_server_block(route)
        self.logger.debug(f"Server block for {route.name}:\n{content}")

        staging = f"{location.definition}.pushdeploy-tmp"
        self._require(
            self.ssh.run(["sudo", "tee", staging], input_text=content),
            f"Could not write {staging}",
        )
        self._require(
            self.ssh.run(["sudo", "mv", "-f", staging, location.definition]),
            f"Could not move route into {location.definition}",
        )

        if location.enabled:
            self._require(
                self.ssh.run(["sudo", "ln", "-sfn", location.definition, location.enabled]),
                f"Could not enable route {location.enabled}",
            )
            default_site = posixpath.join(NGINX_SITES_ENABLED, NGINX_DEFAULT_SITE)
            if route.name != NGINX_DEFAULT_SITE:
                self._require(
                    self.ssh.run(["sudo", "rm", "-f", default_site]),
                    f"Could not disable {default_site}",
                )

        self.test_and_reload()
        self.logger.success(
            f"Proxy :{route.public_port} -> {route.upstream} ({location.definition})"
        )
        return location

    def remove(self, route: ProxyRoute) -> bool:
        """
        Remove the route for *route.name*.

        Returns:
            True if a route existed and was removed, False if there was none

        Raises:
            ProxyError: If removal or the subsequent reload fails
        """
        location = self.location_for(route)
        existing = [
            path
            for path in location.paths
            if self.ssh.run_quiet(sh(PATH_PRESENT_SCRIPT, path))
        ]
        if not existing:
            self.logger.log(f"No proxy route for {route.name}")
            return False

        self._require(
            self.ssh.run(["sudo", "rm", "-f", *location.paths]),
            f"Could not remove proxy route for {route.name}",
        )
        if location.enabled and route.name != NGINX_DEFAULT_SITE:
            self._restore_default_site()
        self.test_and_reload()
        self.logger.success(f"Proxy route for {route.name} removed")
        return True

    def _restore_default_site(self) -> None:
        self._require(
            self.ssh.run(
                sh(
                    RESTORE_DEFAULT_SCRIPT,
                    NGINX_SITES_ENABLED,
                    posixpath.join(NGINX_SITES_AVAILABLE, NGINX_DEFAULT_SITE),
                    NGINX_DEFAULT_SITE,
                )
            ),
            "Could not re-enable the default site",
        )

    def test_and_reload(self) -> None:
        """Validate the whole Nginx configuration, then reload it."""
        self._require(
            self.ssh.run(["sudo", "nginx", "-t"]),
            "Nginx configuration test failed, not reloading",
        )
        self._require(
            self.ssh.run(sh(RELOAD_SCRIPT)),
            "Nginx reload failed",
        )

    @staticmethod
    def _require(result: SSHResult, message: str) -> None:
        if result.is_failure:
            raise ProxyError(message, context=tail_text(result.output) or None)

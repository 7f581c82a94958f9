"""Proxy configurator: route files, replacement, validation before reload."""

import pytest

from pushdeploy.exceptions import ProxyError
from pushdeploy.models.deployment import ProxyRoute
from pushdeploy.services.proxy_service import ProxyService, render_server_block

AVAILABLE = "/etc/nginx/sites-available/app"
ENABLED = "/etc/nginx/sites-enabled/app"
DEFAULT = "/etc/nginx/sites-enabled/default"


def test_server_block_forwards_to_loopback():
    block = render_server_block(ProxyRoute("app", 3000))

    assert "listen 80;" in block
    assert "server_name _;" in block
    assert "proxy_pass http://127.0.0.1:3000;" in block
    assert "proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;" in block
    assert "proxy_read_timeout 90;" in block


def test_debian_layout_writes_definition_and_link(remote, ssh):
    remote.links[DEFAULT] = "/etc/nginx/sites-available/default"

    location = ProxyService(ssh, ssh.logger).configure(ProxyRoute("app", 3000))

    assert location.definition == AVAILABLE
    assert "127.0.0.1:3000" in remote.files[AVAILABLE]
    assert remote.links[ENABLED] == AVAILABLE
    assert DEFAULT not in remote.links
    assert remote.reloads == 1
    # written to a staging file first, then renamed into place
    assert remote.ran("sudo", "tee", AVAILABLE + ".pushdeploy-tmp")
    assert remote.ran("sudo", "mv", "-f", AVAILABLE + ".pushdeploy-tmp", AVAILABLE)
    assert not any(path.endswith(".pushdeploy-tmp") for path in remote.files)


def test_replacing_route_leaves_single_definition(remote, ssh):
    service = ProxyService(ssh, ssh.logger)
    service.configure(ProxyRoute("app", 3000))
    service.configure(ProxyRoute("app", 4000))

    routes = [path for path in remote.files if path.startswith("/etc/nginx/")]
    assert routes == [AVAILABLE]
    assert "127.0.0.1:4000" in remote.files[AVAILABLE]
    assert "127.0.0.1:3000" not in remote.files[AVAILABLE]
    assert list(remote.links) == [ENABLED]


def test_conf_d_layout(remote, ssh):
    remote.debian_nginx = False

    location = ProxyService(ssh, ssh.logger).configure(ProxyRoute("app", 3000))

    assert location.definition == "/etc/nginx/conf.d/app.conf"
    assert location.enabled is None
    assert "127.0.0.1:3000" in remote.files["/etc/nginx/conf.d/app.conf"]
    assert remote.links == {}


def test_invalid_config_is_never_reloaded(remote, ssh):
    remote.nginx_config_valid = False

    with pytest.raises(ProxyError) as excinfo:
        ProxyService(ssh, ssh.logger).configure(ProxyRoute("app", 3000))

    assert excinfo.value.exit_code == 60
    assert "unexpected end of file" in excinfo.value.context
    assert remote.reloads == 0


def test_write_failure_is_proxy_error(remote, ssh):
    remote.fail("sudo", "tee")
    with pytest.raises(ProxyError):
        ProxyService(ssh, ssh.logger).configure(ProxyRoute("app", 3000))
    assert not remote.ran("sudo", "nginx", "-t")


def test_remove_existing_route_reloads(remote, ssh):
    service = ProxyService(ssh, ssh.logger)
    service.configure(ProxyRoute("app", 3000))

    assert service.remove(ProxyRoute("app")) is True
    assert AVAILABLE not in remote.files
    assert ENABLED not in remote.links
    assert remote.reloads == 2


def test_remove_without_route_does_not_reload(remote, ssh):
    assert ProxyService(ssh, ssh.logger).remove(ProxyRoute("app")) is False
    assert remote.reloads == 0
    assert not remote.ran("sudo", "nginx", "-t")


def test_remove_dangling_link(remote, ssh):
    remote.links[ENABLED] = AVAILABLE
    assert ProxyService(ssh, ssh.logger).remove(ProxyRoute("app")) is True
    assert remote.links == {}


def test_remove_reenables_default_site_when_nothing_else_enabled(remote, ssh):
    default_definition = "/etc/nginx/sites-available/default"
    remote.files[default_definition] = "server { listen 80 default_server; }"
    remote.links[DEFAULT] = default_definition
    service = ProxyService(ssh, ssh.logger)
    service.configure(ProxyRoute("app", 3000))
    assert DEFAULT not in remote.links

    service.remove(ProxyRoute("app"))

    assert remote.links == {DEFAULT: default_definition}


def test_remove_keeps_default_disabled_while_other_sites_enabled(remote, ssh):
    default_definition = "/etc/nginx/sites-available/default"
    remote.files[default_definition] = "server { listen 80 default_server; }"
    service = ProxyService(ssh, ssh.logger)
    service.configure(ProxyRoute("app", 3000))
    service.configure(ProxyRoute("api", 4000))

    service.remove(ProxyRoute("app"))

    assert DEFAULT not in remote.links
    assert remote.links == {"/etc/nginx/sites-enabled/api": "/etc/nginx/sites-available/api"}

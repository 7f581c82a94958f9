"""Helper functions."""

import pytest

from pushdeploy.utils import (
    logical_name_for,
    mask_secret,
    repo_name_from_url,
    sh,
    ssh_failure_hint,
    tail_text,
)


@pytest.mark.parametrize(
    "url, name",
    [
        ("https://example.com/acme/app.git", "app"),
        ("https://example.com/acme/app", "app"),
        ("https://example.com/acme/app.git/", "app"),
        ("git@example.com:app.git", "app"),
    ],
)
def test_repo_name_from_url(url, name):
    assert repo_name_from_url(url) == name


def test_logical_name_suffix():
    assert logical_name_for("app") == "app_app"
    assert logical_name_for("Web Site") == "web_site_app"


def test_mask_secret_keeps_head_and_tail():
    assert mask_secret("ghp_1234567890abcd") == "ghp_12...abcd"


@pytest.mark.parametrize("value", [None, "", "short", "0123456789"])
def test_mask_secret_hides_short_values(value):
    assert mask_secret(value) == "***"


def test_ssh_failure_hint():
    assert "authentication" in ssh_failure_hint("Permission denied (publickey).")
    assert ssh_failure_hint("something else") == ""


def test_tail_text():
    assert tail_text("a\nb\nc\n", 2) == "b\nc"
    assert tail_text("", 2) == ""


def test_sh_passes_values_as_positional_parameters():
    assert sh('echo "$1"', "a b") == ["sh", "-c", 'echo "$1"', "sh", "a b"]

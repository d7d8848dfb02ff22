"""Unit tests for deploy parameter validation and derived fields."""

import os
import re

import pytest

from dockhand.deploy.params import DeployParams, derive_app_name, repo_name_from_url, validate_params
from dockhand.errors import ValidationError


def test_valid_params(raw_params, ssh_key):
    params = validate_params(raw_params)
    assert isinstance(params, DeployParams)
    assert params.repo_url == "https://github.com/acme/hello-app.git"
    assert params.app_port == 3000
    assert params.ssh_port == 22
    assert params.ssh_key == ssh_key
    assert params.address == "ubuntu@203.0.113.10"


def test_params_are_immutable(params):
    with pytest.raises(AttributeError):
        params.app_port = 8080


def test_token_hidden_from_repr(params):
    assert "ghp_testtoken123456" not in repr(params)


@pytest.mark.parametrize("url", [
    "github.com/acme/app.git",
    "git@github.com:acme/app.git",
    "ftp://example.com/app.git",
    "",
])
def test_malformed_url_rejected(raw_params, url):
    raw_params["repo_url"] = url
    with pytest.raises(ValidationError, match="Git URL"):
        validate_params(raw_params)


def test_plain_http_url_accepted(raw_params):
    raw_params["repo_url"] = "http://git.internal/team/app"
    assert validate_params(raw_params).repo_name == "app"


@pytest.mark.parametrize("token", ["", "   ", None])
def test_empty_token_rejected(raw_params, token):
    raw_params["token"] = token
    with pytest.raises(ValidationError, match="token cannot be empty"):
        validate_params(raw_params)


def test_branch_defaults_to_main(raw_params):
    raw_params["branch"] = ""
    assert validate_params(raw_params).branch == "main"


@pytest.mark.parametrize("branch", ["-x", "a..b", "feature x", "topic.lock"])
def test_invalid_branch_rejected(raw_params, branch):
    raw_params["branch"] = branch
    with pytest.raises(ValidationError, match="branch"):
        validate_params(raw_params)


@pytest.mark.parametrize("server", ["", "host; rm -rf /", "$(whoami)", "a b"])
def test_invalid_server_rejected(raw_params, server):
    raw_params["server"] = server
    with pytest.raises(ValidationError, match="server address"):
        validate_params(raw_params)


def test_invalid_ssh_user_rejected(raw_params):
    raw_params["ssh_user"] = "root;id"
    with pytest.raises(ValidationError, match="SSH username"):
        validate_params(raw_params)


def test_missing_key_file_rejected(raw_params, tmp_path):
    raw_params["ssh_key"] = str(tmp_path / "nope")
    with pytest.raises(ValidationError, match="SSH key not found"):
        validate_params(raw_params)


def test_key_path_tilde_expanded(raw_params, tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / ".ssh").mkdir()
    (tmp_path / ".ssh" / "id_rsa").write_text("key")
    raw_params["ssh_key"] = "~/.ssh/id_rsa"
    assert validate_params(raw_params).ssh_key == os.path.join(str(tmp_path), ".ssh", "id_rsa")


@pytest.mark.parametrize("port", ["abc", "80a", "", "0", "70000", "-1"])
def test_bad_port_rejected(raw_params, port):
    raw_params["app_port"] = port
    with pytest.raises(ValidationError, match="Port"):
        validate_params(raw_params)


def test_first_invalid_field_reported(raw_params):
    raw_params["repo_url"] = "nope"
    raw_params["token"] = ""
    raw_params["app_port"] = "x"
    with pytest.raises(ValidationError, match="Git URL"):
        validate_params(raw_params)


# ── derived names ──────────────────────────────────────────────────


def test_working_copy_is_stable(params, tmp_path):
    assert params.working_copy == os.path.join(str(tmp_path / "work"), "hello-app")
    assert params.app_name == "hello-app"


@pytest.mark.parametrize("url,expected", [
    ("https://github.com/acme/hello-app.git", "hello-app"),
    ("https://github.com/acme/hello-app", "hello-app"),
    ("https://github.com/acme/hello-app/", "hello-app"),
    ("https://gitlab.example.com/group/sub/My_Service.git", "My_Service"),
])
def test_repo_name_from_url(url, expected):
    assert repo_name_from_url(url) == expected


@pytest.mark.parametrize("path,expected", [
    ("/work/hello-app", "hello-app"),
    ("/work/My_Service", "my_service"),
    ("/work/weird name$(x)", "weird-name-x"),
    ("/work/-lead", "lead"),
])
def test_derive_app_name_is_shell_safe(path, expected):
    assert derive_app_name(path) == expected


def test_derive_app_name_rejects_empty():
    with pytest.raises(ValidationError):
        derive_app_name("/work/$$$")


def test_unusable_repo_name_rejected_at_validation(raw_params):
    raw_params["repo_url"] = "https://github.com/acme/---.git"
    with pytest.raises(ValidationError, match="application name"):
        validate_params(raw_params)


@pytest.mark.parametrize("path,expected", [
    ("/w/user.github.io", "user-github-io"),
    ("/w/a-_b", "a-b"),
    ("/w/name_", "name"),
    ("/w/_x__y--z.", "x-y-z"),
])
def test_derive_app_name_is_valid_compose_project(path, expected):
    name = derive_app_name(path)
    assert name == expected
    assert re.fullmatch(r"[a-z0-9][a-z0-9_-]*", name)
    assert not re.search(r"[_-]{2,}", name)
    assert name[-1].isalnum()

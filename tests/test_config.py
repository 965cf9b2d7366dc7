import os
import subprocess
import sys
from pathlib import Path

import pytest

from vaultkv.config import ClientConfig, VaultSettings, get_settings
from vaultkv.credentials import AppRoleCredential, KubernetesCredential, TokenCredential
from vaultkv.errors import ConfigError


def test_client_config_trims_segments():
    config = ClientConfig.build(address="http://vault:8200/", mount="/kv/", base_path="/books-api/config/")
    assert config.address == "http://vault:8200"
    assert config.mount == "kv"
    assert config.base_path == "books-api/config"
    assert isinstance(config.credential, TokenCredential)


@pytest.mark.parametrize("address", ["not a url", "vault:8200", "ftp://vault", ""])
def test_client_config_rejects_malformed_address(address):
    with pytest.raises(ConfigError):
        ClientConfig.build(address=address, mount="kv", base_path="base")


@pytest.mark.parametrize(("mount", "base_path"), [("", "base"), ("kv", "/"), ("  ", "base")])
def test_client_config_rejects_empty_segments(mount, base_path):
    with pytest.raises(ConfigError):
        ClientConfig.build(address="http://vault", mount=mount, base_path=base_path)


def test_client_config_parses_tagged_credential():
    config = ClientConfig.build(
        address="http://vault",
        mount="kv",
        base_path="base",
        credential={"kind": "approle", "role_id": "role-1"},
    )
    assert isinstance(config.credential, AppRoleCredential)
    assert config.credential.auth_mount == "approle"


def test_client_config_rejects_unknown_credential_kind():
    with pytest.raises(ConfigError):
        ClientConfig.build(address="http://vault", mount="kv", base_path="base", credential={"kind": "ldap"})


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "http://vault:8200")
    monkeypatch.setenv("VAULT_TOKEN", "s.token")
    monkeypatch.setenv("VAULT_KV_MOUNT", "secret")
    monkeypatch.setenv("VAULT_SECRET_PATH", "books-api/config")
    config = get_settings().client_config()
    assert config.address == "http://vault:8200"
    assert config.mount == "secret"
    assert config.base_path == "books-api/config"
    assert config.credential == TokenCredential(token="s.token")


def test_settings_build_approle_credential():
    settings = VaultSettings(
        addr="http://vault",
        secret_path="base",
        auth_method="approle",
        auth_mount="ci-approle",
        role_id="role-1",
        secret_id="secret-1",
    )
    credential = settings.client_config().credential
    assert isinstance(credential, AppRoleCredential)
    assert credential.auth_mount == "ci-approle"
    assert credential.secret_id == "secret-1"


def test_settings_build_kubernetes_credential():
    settings = VaultSettings(addr="http://vault", secret_path="base", auth_method="kubernetes", k8s_role="reader")
    credential = settings.client_config().credential
    assert isinstance(credential, KubernetesCredential)
    assert credential.auth_mount == "kubernetes"


def test_settings_require_role_for_approle():
    settings = VaultSettings(addr="http://vault", secret_path="base", auth_method="approle")
    with pytest.raises(ConfigError):
        settings.client_config()


def test_settings_require_address():
    with pytest.raises(ConfigError):
        VaultSettings(addr=None, secret_path="base").client_config()


def test_credential_repr_hides_secrets():
    assert "s.hidden" not in repr(TokenCredential(token="s.hidden"))
    assert "sid" not in repr(AppRoleCredential(role_id="r", secret_id="sid"))


def test_settings_read_dotenv_without_touching_environment(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text("VAULT_ADDR=http://vault:8200\nVAULT_TOKEN=s.dotenv\nVAULT_SECRET_PATH=base\n")
    monkeypatch.delenv("VAULT_ADDR", raising=False)
    monkeypatch.delenv("VAULT_SECRET_PATH", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.token == "s.dotenv"
    assert settings.addr == "http://vault:8200"
    assert "VAULT_TOKEN" not in os.environ
    assert "VAULT_ADDR" not in os.environ


def test_import_leaves_environment_alone(tmp_path):
    (tmp_path / ".env").write_text("VAULT_TOKEN=s.dotenv\n")
    root = Path(__file__).resolve().parents[1]
    env = {key: value for key, value in os.environ.items() if key != "VAULT_TOKEN"}
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH")]))
    env["HOME"] = str(tmp_path)
    script = (
        "import os\n"
        "from vaultkv.client import SecretClient\n"
        "client = SecretClient.new('http://vault:8200', 'kv', 'base', token_path='/nonexistent')\n"
        "print(os.environ.get('VAULT_TOKEN'), client.token)\n"
    )

    result = subprocess.run(
        [sys.executable, "-c", script], cwd=tmp_path, env=env, capture_output=True, text=True, check=True
    )

    assert result.stdout.split() == ["None", "None"]

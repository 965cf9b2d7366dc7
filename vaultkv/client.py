"""Typed reads from a HashiCorp Vault KV v2 engine.

Example::

    from pydantic import BaseModel

    from vaultkv.client import SecretClient


    class Creds(BaseModel):
        username: str
        password: str


    client = SecretClient.new("https://vault:8200", "kv", "my-service")

    # reads kv/data/my-service
    settings = await client.read_secrets(dict[str, str])

    # reads kv/data/my-service/creds
    creds = await client.read_secrets_from(Creds, "creds")
"""

import logging
from typing import Any, TypeVar

import anyio
import hvac
import requests
from hvac.exceptions import InvalidPath, VaultError
from opentelemetry import trace

from .config import ClientConfig, VaultSettings, get_settings
from .credentials import (
    VAULT_TOKEN_PATH,
    AppRoleCredential,
    KubernetesCredential,
    TokenCredential,
    fetch_token,
    resolve_static_token,
)
from .decode import decode
from .errors import ConfigError, NotFoundError, TransportError
from .paths import DATA, METADATA, resolve, secret_path

T = TypeVar("T")

logger = logging.getLogger("vaultkv.client")
tracer = trace.get_tracer(__name__)


def _vault_client(config: ClientConfig, token: str | None, session: requests.Session | None) -> hvac.Client:
    return hvac.Client(url=config.address, token=token, timeout=config.timeout, session=session)


class SecretClient:
    """Reads secrets below ``<mount>/data/<base_path>``.

    The token is fixed at construction. Nothing is refreshed or cached, so an
    expired token surfaces as an error on the next read and the client has to
    be built again.
    """

    def __init__(self, config: ClientConfig, vault: hvac.Client):
        self.config = config
        self._vault = vault

    def __repr__(self) -> str:
        return (
            f"SecretClient(address={self.config.address!r}, mount={self.config.mount!r}, "
            f"base_path={self.config.base_path!r}, credential={self.config.credential.kind!r})"
        )

    @property
    def token(self) -> str | None:
        return self._vault.token

    @classmethod
    def new(
        cls,
        address: str,
        mount: str,
        base_path: str,
        token: str | None = None,
        *,
        token_path: str = VAULT_TOKEN_PATH,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> "SecretClient":
        """Build a client from a pre-issued token. No request is sent.

        Without ``token`` the agent token file at ``token_path`` is used when
        it exists; otherwise hvac falls back to ``VAULT_TOKEN``.
        """
        config = ClientConfig.build(
            address=address,
            mount=mount,
            base_path=base_path,
            credential={"kind": "token", "token": token},
            token_path=token_path,
            timeout=timeout,
        )
        return cls._from_token(config, session)

    @classmethod
    async def create(
        cls,
        address: str,
        auth_mount: str,
        role_id: str,
        mount: str,
        base_path: str,
        *,
        secret_id: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> "SecretClient":
        """Build a client by logging in with an AppRole role id."""
        config = ClientConfig.build(
            address=address,
            mount=mount,
            base_path=base_path,
            credential={"kind": "approle", "auth_mount": auth_mount, "role_id": role_id, "secret_id": secret_id},
            timeout=timeout,
        )
        return await cls.login(config, session=session)

    @classmethod
    async def login(cls, config: ClientConfig, *, session: requests.Session | None = None) -> "SecretClient":
        credential = config.credential
        if isinstance(credential, TokenCredential):
            return cls._from_token(config, session)
        if isinstance(credential, (AppRoleCredential, KubernetesCredential)):
            # empty token keeps hvac from picking up VAULT_TOKEN for the login call
            anonymous = _vault_client(config, "", session)
            token = await anyio.to_thread.run_sync(fetch_token, anonymous, credential)
            return cls(config, _vault_client(config, token, session))
        raise ConfigError(f"Unsupported credential: {type(credential).__name__}")

    @classmethod
    async def from_settings(
        cls, settings: VaultSettings | None = None, *, session: requests.Session | None = None
    ) -> "SecretClient":
        settings = settings or get_settings()
        return await cls.login(settings.client_config(), session=session)

    @classmethod
    def _from_token(cls, config: ClientConfig, session: requests.Session | None) -> "SecretClient":
        token = resolve_static_token(config.credential, config.token_path)
        return cls(config, _vault_client(config, token, session))

    async def read_secrets(self, target: type[T]) -> T:
        """Read the secret stored at the base path."""
        return await self._read(target, resolve(self.config.mount, self.config.base_path))

    async def read_secrets_from(self, target: type[T], relative: str) -> T:
        """Read the secret stored at ``base_path/relative``."""
        return await self._read(target, resolve(self.config.mount, self.config.base_path, relative))

    async def read_metadata(self, relative: str | None = None) -> Any:
        """Fetch the KV v2 metadata of the base path, or of ``base_path/relative``."""
        # httpx is only needed here; keep it out of the read path
        from .metadata import MetadataReader

        path = resolve(self.config.mount, self.config.base_path, relative)
        reader = MetadataReader(self.config.address, self.token or "", timeout=self.config.timeout)
        return await reader.read(secret_path(self.config.mount, METADATA, path))

    async def _read(self, target: type[T], path: str) -> T:
        full_path = secret_path(self.config.mount, DATA, path)
        with tracer.start_as_current_span("vault.read") as span:
            span.set_attribute("vault.mount", self.config.mount)
            span.set_attribute("vault.path", path)
            payload = await anyio.to_thread.run_sync(self._read_payload, path, full_path)
        return decode(target, payload, full_path)

    def _read_payload(self, path: str, full_path: str) -> Any:
        try:
            response = self._vault.secrets.kv.v2.read_secret_version(
                path=path,
                mount_point=self.config.mount,
                raise_on_deleted_version=True,
            )
        except InvalidPath as exc:
            logger.info("vault.read.not_found", extra={"mount": self.config.mount, "path": path})
            raise NotFoundError(full_path) from exc
        except (VaultError, requests.exceptions.RequestException) as exc:
            logger.warning(
                "vault.read.failed",
                extra={"mount": self.config.mount, "path": path, "error": type(exc).__name__},
            )
            raise TransportError(f"Failed to read secret: {exc}", path=full_path) from exc

        payload = ((response or {}).get("data") or {}).get("data")
        if payload is None:
            # version exists but was deleted or destroyed
            raise NotFoundError(full_path)
        logger.debug("vault.read.ok", extra={"mount": self.config.mount, "path": path})
        return payload

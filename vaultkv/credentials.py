import logging
import os
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import hvac
import requests
from hvac.exceptions import VaultError
from opentelemetry import trace
from pydantic import BaseModel, Field

from .errors import AuthError, ConfigError

VAULT_TOKEN_PATH = "/vault/secrets/token"
K8S_JWT = "K8S_JWT"
SERVICE_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"

logger = logging.getLogger("vaultkv.credentials")
tracer = trace.get_tracer(__name__)


class TokenCredential(BaseModel):
    kind: Literal["token"] = "token"
    token: str | None = Field(default=None, repr=False)


class AppRoleCredential(BaseModel):
    kind: Literal["approle"] = "approle"
    auth_mount: str = Field(default="approle", min_length=1)
    role_id: str = Field(min_length=1)
    secret_id: str | None = Field(default=None, repr=False)


class KubernetesCredential(BaseModel):
    kind: Literal["kubernetes"] = "kubernetes"
    auth_mount: str = Field(default="kubernetes", min_length=1)
    role: str = Field(min_length=1)
    jwt: str | None = Field(default=None, repr=False)


Credential = Annotated[
    Union[TokenCredential, AppRoleCredential, KubernetesCredential],
    Field(discriminator="kind"),
]


def read_token_from(path: str) -> str:
    try:
        return Path(path).read_text().strip()
    except OSError as exc:
        raise ConfigError(f"Failed to read token from {path}") from exc


def resolve_static_token(credential: TokenCredential, token_path: str = VAULT_TOKEN_PATH) -> str | None:
    """Pick the token for token mode without touching the network.

    An explicit token wins, then the agent token file. ``None`` leaves the
    lookup to hvac, which reads ``VAULT_TOKEN`` or ``~/.vault-token``.
    """
    if credential.token:
        return credential.token
    if token_path and os.path.exists(token_path):
        return read_token_from(token_path)
    return None


def service_account_jwt() -> str:
    env_token = os.getenv(K8S_JWT)
    if env_token:
        return env_token
    return read_token_from(SERVICE_TOKEN_PATH)


def _call_login(vault: hvac.Client, credential: AppRoleCredential | KubernetesCredential) -> dict[str, Any]:
    if isinstance(credential, AppRoleCredential):
        return vault.auth.approle.login(
            role_id=credential.role_id,
            secret_id=credential.secret_id,
            use_token=False,
            mount_point=credential.auth_mount,
        )
    if isinstance(credential, KubernetesCredential):
        jwt = credential.jwt or service_account_jwt()
        return vault.auth.kubernetes.login(
            role=credential.role,
            jwt=jwt,
            use_token=False,
            mount_point=credential.auth_mount,
        )
    raise ConfigError(f"Unsupported credential: {type(credential).__name__}")


def fetch_token(vault: hvac.Client, credential: AppRoleCredential | KubernetesCredential) -> str:
    """Exchange a role credential for a client token with a single login call."""
    auth_mount = credential.auth_mount
    with tracer.start_as_current_span("vault.login") as span:
        span.set_attribute("vault.auth_method", credential.kind)
        span.set_attribute("vault.auth_mount", auth_mount)
        try:
            response = _call_login(vault, credential)
        except (VaultError, requests.exceptions.RequestException) as exc:
            logger.warning(
                "vault.login.failed",
                extra={"auth_method": credential.kind, "auth_mount": auth_mount, "error": type(exc).__name__},
            )
            raise AuthError(f"Login against auth/{auth_mount} failed: {exc}", auth_mount=auth_mount) from exc

    token = ((response or {}).get("auth") or {}).get("client_token")
    if not token:
        raise AuthError(f"Login against auth/{auth_mount} returned no client token", auth_mount=auth_mount)
    logger.info("vault.login.ok", extra={"auth_method": credential.kind, "auth_mount": auth_mount})
    return token

from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .credentials import (
    VAULT_TOKEN_PATH,
    AppRoleCredential,
    Credential,
    KubernetesCredential,
    TokenCredential,
)
from .errors import ConfigError

_HTTP_URL = TypeAdapter(AnyHttpUrl)


class ClientConfig(BaseModel):
    address: str
    mount: str
    base_path: str
    credential: Credential = Field(default_factory=TokenCredential)
    token_path: str = VAULT_TOKEN_PATH
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        try:
            url = _HTTP_URL.validate_python(value.strip())
        except ValidationError as exc:
            raise ValueError(f"Vault address must be an absolute http(s) URL: {value!r}") from exc
        return str(url).rstrip("/")

    @field_validator("mount", "base_path")
    @classmethod
    def _check_segment(cls, value: str) -> str:
        value = value.strip().strip("/")
        if not value:
            raise ValueError("must not be empty")
        return value

    @classmethod
    def build(cls, **values) -> "ClientConfig":
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid client configuration: {exc}") from exc


class VaultSettings(BaseSettings):
    addr: str | None = None
    token: str | None = None
    token_path: str = VAULT_TOKEN_PATH
    kv_mount: str = "kv"
    secret_path: str | None = None
    auth_method: Literal["token", "approle", "kubernetes"] = "token"
    auth_mount: str | None = None
    role_id: str | None = None
    secret_id: str | None = None
    k8s_role: str | None = None
    timeout: float = 30.0

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def credential(self) -> TokenCredential | AppRoleCredential | KubernetesCredential:
        if self.auth_method == "approle":
            if not self.role_id:
                raise ConfigError("VAULT_ROLE_ID is required for approle authentication")
            return AppRoleCredential(
                auth_mount=self.auth_mount or "approle",
                role_id=self.role_id,
                secret_id=self.secret_id,
            )
        if self.auth_method == "kubernetes":
            if not self.k8s_role:
                raise ConfigError("VAULT_K8S_ROLE is required for kubernetes authentication")
            return KubernetesCredential(auth_mount=self.auth_mount or "kubernetes", role=self.k8s_role)
        return TokenCredential(token=self.token)

    def client_config(self) -> ClientConfig:
        if not self.addr:
            raise ConfigError("VAULT_ADDR is not set")
        if not self.secret_path:
            raise ConfigError("VAULT_SECRET_PATH is not set")
        return ClientConfig.build(
            address=self.addr,
            mount=self.kv_mount,
            base_path=self.secret_path,
            credential=self.credential(),
            token_path=self.token_path,
            timeout=self.timeout,
        )


def get_settings() -> VaultSettings:
    return VaultSettings()

from typing import Any


class ClientError(Exception):
    """Base class for every error raised by vaultkv."""


class ConfigError(ClientError):
    pass


class InvalidPathError(ClientError, ValueError):
    pass


class AuthError(ClientError):
    def __init__(self, message: str, *, auth_mount: str):
        super().__init__(message)
        self.auth_mount = auth_mount


class NotFoundError(ClientError):
    def __init__(self, path: str):
        super().__init__(f"No secret found at {path}")
        self.path = path


class DecodeError(ClientError):
    def __init__(self, message: str, *, path: str):
        super().__init__(f"{message} (path: {path})")
        self.path = path


class TransportError(ClientError):
    def __init__(self, message: str, *, path: str):
        super().__init__(f"{message} (path: {path})")
        self.path = path


class HttpError(ClientError):
    def __init__(self, message: str, *, url: str):
        super().__init__(message)
        self.url = url


class VaultApiError(ClientError):
    def __init__(self, status: int, body: Any):
        super().__init__(f"Unexpected response from the Vault API: {status}. Message: {body}")
        self.status = status
        self.body = body

"""Direct HTTP access to KV v2 metadata.

hvac's typed surface is bypassed here on purpose: the call goes straight to
``/v1/<mount>/metadata/<path>`` over httpx and returns whatever JSON Vault
sends back, since the metadata schema differs between engine versions.
Installed through the ``metadata`` extra.
"""

import logging
from typing import Any

import httpx
from opentelemetry import trace

from .errors import DecodeError, HttpError, VaultApiError

VAULT_X_TOKEN = "X-Vault-Token"

logger = logging.getLogger("vaultkv.metadata")
tracer = trace.get_tracer(__name__)


class MetadataReader:
    def __init__(self, address: str, token: str, timeout: float = 30.0):
        self.address = address.rstrip("/")
        self.token = token
        self.timeout = timeout

    def url_for(self, path: str) -> str:
        return f"{self.address}/v1/{path.lstrip('/')}"

    async def read(self, path: str) -> Any:
        url = self.url_for(path)
        with tracer.start_as_current_span("vault.metadata") as span:
            span.set_attribute("vault.path", path)
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(url, headers={VAULT_X_TOKEN: self.token})
            except httpx.RequestError as exc:
                raise HttpError(f"Failed to send request: {exc}", url=url) from exc
            span.set_attribute("http.status_code", resp.status_code)

        if not resp.is_success:
            logger.warning("vault.metadata.error", extra={"path": path, "status": resp.status_code})
            raise VaultApiError(resp.status_code, resp.text)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise DecodeError(f"Metadata response is not valid JSON: {exc}", path=path) from exc
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

"""Delivery clients for notification emails.

Templating and transport live in an external mail service; this module only
knows how to hand it a message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from forum_stage.core.errors import NotificationError
from forum_stage.core.settings import Settings

logger = logging.getLogger(__name__)


class Emailer(Protocol):
    """Send contract consumed by the reply notifier."""

    async def send(
        self,
        template: str,
        recipient: str,
        locale: str,
        params: Mapping[str, Any],
    ) -> None:
        """Deliver ``template`` rendered with ``params`` to ``recipient``.

        Raises:
            NotificationError: If the message could not be handed off.
        """
        ...


@dataclass(frozen=True)
class EmailConfig:
    """Immutable configuration for the HTTP mail service."""

    base_url: str
    api_key: str | None
    timeout_seconds: float


class HttpEmailer:
    """Posts messages to a mail service's ``/send`` endpoint."""

    def __init__(self, config: EmailConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            return {}
        return {"Authorization": f"Bearer {self.config.api_key}"}

    async def send(
        self,
        template: str,
        recipient: str,
        locale: str,
        params: Mapping[str, Any],
    ) -> None:
        client = await self._ensure_client()
        body = {
            "template": template,
            "to": recipient,
            "locale": locale,
            "params": dict(params),
        }
        try:
            response = await client.post("/send", json=body, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationError(f"Email delivery to {recipient} failed: {exc}") from exc
        logger.debug("Queued %s email for %s", template, recipient)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class LogEmailer:
    """Stand-in used when no mail service is configured; it only logs."""

    async def send(
        self,
        template: str,
        recipient: str,
        locale: str,
        params: Mapping[str, Any],
    ) -> None:
        logger.info("Email delivery disabled; dropping %s email for %s", template, recipient)

    async def close(self) -> None:
        return None


def build_emailer(settings: Settings) -> HttpEmailer | LogEmailer:
    """Return the emailer matching the configured delivery settings."""
    if settings.email_enabled and settings.email_api_url:
        return HttpEmailer(
            EmailConfig(
                base_url=settings.email_api_url,
                api_key=settings.email_api_key,
                timeout_seconds=float(settings.email_http_timeout_seconds),
            )
        )
    return LogEmailer()

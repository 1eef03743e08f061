from __future__ import annotations
from typing import Protocol
import logging

import httpx
from fastapi import Request

from app.config import Settings
from app.services.errors import AbuseShieldError

logger = logging.getLogger(__name__)


class Shield(Protocol):
    async def check(self, request: Request) -> None:
        """Return when the request is allowed; raise AbuseShieldError otherwise."""
        ...


class AllowAllShield:
    """Used when no shield key is configured."""

    async def check(self, request: Request) -> None:
        return None


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


class RemoteShield:
    """Asks an external decision service whether to serve the request.

    In DRY_RUN mode a DENY decision is only logged. Decision-service failures
    let the request through with a warning.
    """

    def __init__(self, key: str, url: str, http_client: httpx.AsyncClient, mode: str = "DRY_RUN"):
        self.key = key
        self.url = url
        self.mode = mode
        self._http = http_client

    async def check(self, request: Request) -> None:
        details = {
            "ip": _client_ip(request),
            "method": request.method,
            "path": request.url.path,
            "userAgent": request.headers.get("user-agent", ""),
        }
        try:
            resp = await self._http.post(
                self.url,
                headers={"Authorization": f"Bearer {self.key}"},
                json={"rules": [{"type": "shield", "mode": self.mode}], "details": details},
            )
            resp.raise_for_status()
            decision = resp.json()
        except (httpx.HTTPError, ValueError):
            logger.warning("shield: decision service unavailable; allowing path=%s", details["path"])
            return
        conclusion = str((decision or {}).get("conclusion", "")).upper()
        if conclusion != "DENY":
            return
        if self.mode != "LIVE":
            logger.info("shield: would deny (dry run) ip=%s path=%s", details["ip"], details["path"])
            return
        logger.warning("shield: denied ip=%s path=%s", details["ip"], details["path"])
        raise AbuseShieldError("Forbidden")


def build_shield(settings: Settings, http_client: httpx.AsyncClient) -> Shield:
    if not settings.shield_key:
        return AllowAllShield()
    return RemoteShield(settings.shield_key, settings.shield_url, http_client, settings.shield_mode)

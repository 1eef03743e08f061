from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
import json
import logging

from fastapi import Request

from app.models.schema import ProviderRequest
from app.services.errors import UnknownProviderError, ValidationError
from app.services.llm import DEFAULT_PROVIDER, PROVIDERS

logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the inbound body as a JSON object or raise ValidationError."""
    raw = await request.body()
    try:
        body = json.loads(raw or b"null")
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    return body


def require_fields(body: Dict[str, Any], fields: Iterable[str], message: Optional[str] = None) -> Dict[str, Any]:
    """Return the named fields, raising ValidationError when any is absent or empty.

    Null, empty strings, false and zero count as missing; empty objects and lists do not.
    """
    values: Dict[str, Any] = {}
    for name in fields:
        value = body.get(name)
        if value is None or value == "" or (not isinstance(value, (dict, list)) and value == 0):
            logger.info("validation: missing field=%s", name)
            raise ValidationError(message or f"{name} is required")
        values[name] = value
    return values


def parse_provider_request(
    body: Dict[str, Any],
    required: Iterable[str],
    options: Dict[str, Any],
    message: Optional[str] = None,
) -> ProviderRequest:
    """Validate the body and build the single-use ProviderRequest.

    `options` maps optional field names to their defaults; a null or missing
    value takes the default.
    """
    payload = require_fields(body, required, message)
    provider = body.get("provider") or DEFAULT_PROVIDER
    if not isinstance(provider, str) or provider not in PROVIDERS:
        raise UnknownProviderError("Invalid AI provider")
    resolved = {}
    for name, default in options.items():
        value = body.get(name)
        resolved[name] = default if value is None else value
    return ProviderRequest(provider=provider, payload=payload, options=resolved)

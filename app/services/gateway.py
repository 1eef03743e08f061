from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Optional, TypeVar
import asyncio
import json
import logging

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from app.config import Settings
from app.models.schema import SuggestionList
from app.services.auth import Authenticator
from app.services.errors import GatewayError, SchemaValidationError, UpstreamCancelled
from app.services.llm import TextProvider, get_provider
from app.services.shield import Shield

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_SECONDS = 0.1


@dataclass
class GatewayServices:
	"""Collaborators built once at startup and shared read-only by every request."""

	settings: Settings
	http_client: httpx.AsyncClient
	authenticator: Authenticator
	shield: Shield

	def provider(self, name: str) -> TextProvider:
		return get_provider(name, self.settings, self.http_client)


def get_services(request: Request) -> GatewayServices:
	return request.app.state.services


def raw_json_response(text: Optional[str]) -> Response:
	"""Pass the model's text through untouched; "{}" when it produced nothing."""
	return Response(content=text or "{}", status_code=200, media_type="application/json")


def wrapped_text_response(field: str, text: Optional[str]) -> JSONResponse:
	return JSONResponse({field: (text or "").strip()})


def error_response(exc: GatewayError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
	return JSONResponse({"error": exc.message}, status_code=exc.status_code, headers=headers)


def failure_response(message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
	return JSONResponse({"error": message}, status_code=500, headers=headers)


def _strip_code_fences(text: str) -> str:
	lines = text.strip().split("\n")
	if lines and lines[0].strip().startswith("```"):
		lines = lines[1:]
	while lines and lines[-1].strip() in ("```", ""):
		lines = lines[:-1]
	return "\n".join(lines).strip()


def extract_json_object(text: str) -> Any:
	"""Parse model output as JSON, tolerating ```json fences and prose around one object."""
	text = (text or "").strip()
	try:
		return json.loads(text)
	except ValueError:
		pass
	stripped = _strip_code_fences(text)
	try:
		return json.loads(stripped)
	except ValueError:
		pass
	start, end = stripped.find("{"), stripped.rfind("}")
	if start != -1 and end > start:
		try:
			return json.loads(stripped[start:end + 1])
		except ValueError:
			pass
	raise ValueError("no JSON object found in model output")


def validated_suggestions(text: Optional[str]) -> Dict[str, Any]:
	"""Validate model output against SuggestionList. Non-conforming output is never passed through."""
	if not (text or "").strip():
		raise SchemaValidationError("Failed to generate suggestions")
	try:
		parsed = extract_json_object(text or "")
		result = SuggestionList.model_validate(parsed)
	except (ValueError, PydanticValidationError):
		logger.warning("suggestions: model output failed schema validation snip=%s", (text or "")[:300])
		raise SchemaValidationError("Failed to generate suggestions")
	return result.model_dump(exclude_none=True)


async def run_upstream(request: Request, call: Awaitable[T]) -> T:
	"""Await the single provider call, cancelling it if the inbound caller disconnects first."""
	task = asyncio.ensure_future(call)
	try:
		while True:
			done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
			if done:
				return task.result()
			if await request.is_disconnected():
				logger.info("upstream: caller disconnected; cancelling provider call path=%s", request.url.path)
				task.cancel()
				raise UpstreamCancelled()
	finally:
		if not task.done():
			task.cancel()

from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from app.config import Settings
from app.services.cors import cors_headers
from app.services.errors import FeatureDisabledError, GatewayError, UpstreamCancelled, UpstreamError
from app.services.gateway import (
	error_response,
	failure_response,
	get_services,
	raw_json_response,
	run_upstream,
	validated_suggestions,
	wrapped_text_response,
)
from app.services.llm import available_providers
from app.services.prompts import build_analysis_prompt, build_rewrite_prompt, build_suggestions_prompt
from app.services.validation import parse_provider_request, read_json_body

logger = logging.getLogger(__name__)

router = APIRouter()

# Status for a request whose caller disconnected; the body is never delivered
CLIENT_CLOSED_REQUEST = 499


def ensure_ai_enabled(settings: Settings) -> None:
	if not settings.enable_ai_features:
		raise FeatureDisabledError("AI features are disabled")


async def handle_gateway(
	request: Request,
	name: str,
	failure_message: str,
	work: Callable[[], Awaitable[Response]],
	headers: Optional[Dict[str, str]] = None,
) -> Response:
	"""Run one gateway operation and map every failure to an {error} body with its status."""
	try:
		response = await work()
	except UpstreamCancelled:
		return Response(status_code=CLIENT_CLOSED_REQUEST)
	except UpstreamError:
		logger.exception("%s: upstream_failed", name)
		return failure_response(failure_message, headers)
	except GatewayError as e:
		logger.info("%s: rejected status=%d error=%s", name, e.status_code, e.message)
		return error_response(e, headers)
	except Exception:
		logger.exception("%s: failed", name)
		return failure_response(failure_message, headers)
	if headers:
		response.headers.update(headers)
	return response


@router.get("/ai/providers")
async def list_providers(request: Request) -> Dict[str, Any]:
	settings = get_services(request).settings
	return {"providers": available_providers(settings), "default": "openai"}


@router.post("/ai/analyze-cv")
async def analyze_cv(request: Request):
	services = get_services(request)

	async def work() -> Response:
		ensure_ai_enabled(services.settings)
		body = await read_json_body(request)
		req = parse_provider_request(body, ["cvData"], {}, message="CV data is required")
		logger.info("analyze_cv: provider=%s", req.provider)
		provider = services.provider(req.provider)
		prompt_spec = build_analysis_prompt(req.payload["cvData"])
		text = await run_upstream(request, provider.complete_text(prompt_spec.prompt, prompt_spec.params))
		# Model output is passed through as-is; the caller parses it
		return raw_json_response(text)

	return await handle_gateway(request, "analyze_cv", "Failed to analyze CV", work)


@router.post("/ai/rewrite-section")
async def rewrite_section(request: Request):
	services = get_services(request)

	async def work() -> Response:
		ensure_ai_enabled(services.settings)
		body = await read_json_body(request)
		req = parse_provider_request(
			body,
			["section", "content"],
			{"instructions": "", "tone": "professional", "length": "similar"},
			message="Section and content are required",
		)
		logger.info("rewrite_section: provider=%s section=%s", req.provider, req.payload["section"])
		provider = services.provider(req.provider)
		prompt_spec = build_rewrite_prompt(
			str(req.payload["section"]),
			req.payload["content"],
			tone=req.options["tone"],
			length=req.options["length"],
			instructions=req.options["instructions"],
		)
		text = await run_upstream(request, provider.complete_text(prompt_spec.prompt, prompt_spec.params))
		return wrapped_text_response("rewrittenContent", text)

	return await handle_gateway(request, "rewrite_section", "Failed to rewrite content", work)


@router.options("/ai/suggest-improvements")
async def suggest_improvements_preflight(request: Request):
	try:
		headers = cors_headers(request.headers.get("origin"), get_services(request).settings)
	except Exception:
		logger.exception("cors_preflight_failed")
		return Response(status_code=405)
	return Response(status_code=200, headers=headers)


@router.post("/ai/suggest-improvements")
async def suggest_improvements(request: Request):
	services = get_services(request)
	headers = cors_headers(request.headers.get("origin"), services.settings)

	async def work() -> Response:
		# Identity and shield run before the body is read or any provider is called
		user_id = await services.authenticator.authenticate(request)
		await services.shield.check(request)
		ensure_ai_enabled(services.settings)
		body = await read_json_body(request)
		req = parse_provider_request(
			body,
			["cvData"],
			{"targetRole": "Software Engineer"},
			message="CV data is required",
		)
		logger.info("suggest_improvements: user=%s provider=%s", user_id, req.provider)
		provider = services.provider(req.provider)
		prompt_spec = build_suggestions_prompt(req.payload["cvData"], target_role=str(req.options["targetRole"]))
		text = await run_upstream(request, provider.complete_text(prompt_spec.prompt, prompt_spec.params))
		return JSONResponse(validated_suggestions(text))

	return await handle_gateway(
		request,
		"suggest_improvements",
		"Failed to generate suggestions",
		work,
		headers=headers,
	)

import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from app.routers.ai import ensure_ai_enabled, handle_gateway
from app.services.gateway import get_services, run_upstream, wrapped_text_response
from app.services.prompts import build_cover_letter_prompt
from app.services.validation import parse_provider_request, read_json_body

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/generate-cover-letter")
async def cover_letter_info():
	return {"message": "Cover Letter Generator API"}


@router.post("/generate-cover-letter")
async def generate_cover_letter(request: Request):
	"""
	Draft a cover letter from the CV and a job description.
	Body: { cvData, jobDescription, company?, position?, provider? }
	Returns: { coverLetter }
	"""
	services = get_services(request)

	async def work() -> Response:
		ensure_ai_enabled(services.settings)
		body = await read_json_body(request)
		req = parse_provider_request(
			body,
			["cvData", "jobDescription"],
			{"company": None, "position": None},
			message="CV data and job description are required",
		)
		logger.info("cover_letter: provider=%s company=%s", req.provider, req.options["company"] or "-")
		provider = services.provider(req.provider)
		prompt_spec = build_cover_letter_prompt(
			req.payload["cvData"],
			str(req.payload["jobDescription"]),
			company=req.options["company"],
			position=req.options["position"],
		)
		text = await run_upstream(request, provider.complete_text(prompt_spec.prompt, prompt_spec.params))
		return wrapped_text_response("coverLetter", text)

	return await handle_gateway(request, "cover_letter", "Failed to generate cover letter", work)

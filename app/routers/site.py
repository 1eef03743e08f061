import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates

from app.config import APP_VERSION, VIEWS_DIR
from app.services.gateway import get_services

logger = logging.getLogger(__name__)

router = APIRouter()
api_router = APIRouter()

templates = Jinja2Templates(directory=str(VIEWS_DIR))


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
	return templates.TemplateResponse(
		request,
		"cv.html",
		{"cv": request.app.state.cv, "version": APP_VERSION},
	)


@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots(request: Request):
	settings = get_services(request).settings
	content = "User-agent: *\n"
	if settings.allow_search_engines:
		content += "Allow: /\n"
	else:
		content += "Disallow: /\n"
	return PlainTextResponse(content, headers={"Cache-Control": "public, max-age=86400"})


@api_router.get("/health")
async def health():
	return {"status": "ok", "version": APP_VERSION}


@api_router.get("/cv")
async def cv(request: Request):
	return request.app.state.cv.model_dump(by_alias=True, exclude_none=True)

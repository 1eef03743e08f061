import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request

import app.config as cfg
from app.config import Settings, load_settings
from app.routers.ai import router as ai_router
from app.routers.cover_letter import router as cover_letter_router
from app.routers.site import api_router as site_api_router
from app.routers.site import router as site_router
from app.services.auth import Authenticator, SessionTokenAuthenticator
from app.services.cors import security_headers
from app.services.cv_data import load_cv_data
from app.services.gateway import GatewayServices
from app.services.shield import Shield, build_shield

# Configure logging
logging.basicConfig(
	level=logging.INFO,
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
	settings: Optional[Settings] = None,
	http_client: Optional[httpx.AsyncClient] = None,
	authenticator: Optional[Authenticator] = None,
	shield: Optional[Shield] = None,
) -> FastAPI:
	"""Build the application. Collaborators not passed in are built from settings."""
	settings = settings or load_settings()
	owns_client = http_client is None
	# No explicit upstream timeout; the platform bounds the request lifetime
	http_client = http_client or httpx.AsyncClient(timeout=None)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		logger.info("App starting. version=%s env=%s", cfg.APP_VERSION, settings.environment)
		logger.info(
			"openai_key_present=%s google_key_present=%s shield=%s",
			bool(settings.openai_api_key),
			bool(settings.google_api_key),
			settings.shield_mode if settings.shield_key else "off",
		)
		yield
		if owns_client:
			await http_client.aclose()

	app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION, lifespan=lifespan)
	app.state.services = GatewayServices(
		settings=settings,
		http_client=http_client,
		authenticator=authenticator or SessionTokenAuthenticator.from_settings(settings),
		shield=shield or build_shield(settings, http_client),
	)
	app.state.cv = load_cv_data()

	@app.middleware("http")
	async def add_security_headers(request: Request, call_next):
		response = await call_next(request)
		for name, value in security_headers(settings).items():
			response.headers.setdefault(name, value)
		return response

	app.include_router(site_router)
	# API routes
	app.include_router(site_api_router, prefix="/api")
	app.include_router(ai_router, prefix="/api")
	app.include_router(cover_letter_router, prefix="/api")
	return app


app = create_app()

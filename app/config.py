import os
import sys
import json
import logging
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from appdirs import user_config_dir
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# Constants
APP_NAME = "CV Portfolio"

# Increment per release
APP_VERSION = "0.3.0"

DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


# Project root (source dev mode). In bundled (PyInstaller) mode, resources are under sys._MEIPASS.
def _source_project_root() -> Path:
	return Path(__file__).resolve().parent.parent

def resource_path(relative_path: str) -> Path:
	"""Return a Path to a bundled resource (PyInstaller) or source path (dev)."""
	base = getattr(sys, "_MEIPASS", None)
	if base:
		return Path(base) / relative_path
	return _source_project_root() / relative_path

# Load .env in dev mode (from repository root) for convenience
_DEV_ENV = _source_project_root() / ".env"
if _DEV_ENV.exists():
	load_dotenv(_DEV_ENV)

VIEWS_DIR = resource_path("app/views")
DATA_DIR = resource_path("app/data")

CONFIG_PATH = Path(user_config_dir(APP_NAME)) / "config.json"


def _read_config_file(path: Path = CONFIG_PATH) -> dict:
	try:
		if path.exists():
			data = json.loads(path.read_text() or "{}")
			return data if isinstance(data, dict) else {}
	except (OSError, ValueError):
		logger.warning("config: unreadable config file path=%s", path)
	return {}


def _flag(value: Optional[str], default: bool) -> bool:
	if value is None or value == "":
		return default
	return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
	"""Process-wide configuration, built once by load_settings() and stored on app.state."""

	model_config = ConfigDict(frozen=True)

	openai_api_key: str = ""
	google_api_key: str = ""
	openai_model: str = "gpt-4o-mini"
	gemini_model: str = "gemini-1.5-flash"
	openai_base_url: str = "https://api.openai.com/v1"
	gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
	gemini_key_location: str = "header"  # "header" (x-goog-api-key) or "query" (?key=)

	environment: str = "development"
	site_url: str = ""
	extra_origins: List[str] = []

	session_secret: str = ""
	session_cookie: str = "__session"
	session_algorithm: str = "HS256"

	shield_key: str = ""
	shield_mode: str = "DRY_RUN"
	shield_url: str = "https://decide.arcjet.com/v1/decide"

	enable_ai_features: bool = True
	allow_search_engines: bool = False

	@property
	def is_production(self) -> bool:
		return self.environment == "production"

	@property
	def allowed_origins(self) -> List[str]:
		if not self.is_production:
			return list(DEV_ORIGINS)
		origins = [self.site_url] + list(self.extra_origins)
		return [o for o in origins if o]


def load_settings(env: Optional[Mapping[str, str]] = None, config_path: Path = CONFIG_PATH) -> Settings:
	"""Build Settings from environment variables, falling back to the per-user config.json for API keys."""
	env = os.environ if env is None else env
	saved = _read_config_file(config_path)

	def pick(name: str, default: str = "") -> str:
		# Env var overrides saved config
		value = env.get(name) or saved.get(name) or default
		return str(value).strip()

	environment = pick("APP_ENV") or pick("NODE_ENV", "development")
	if environment not in {"development", "test", "production"}:
		logger.warning("config: unknown environment=%s; using development", environment)
		environment = "development"

	key_location = pick("GEMINI_KEY_LOCATION", "header").lower()
	if key_location not in {"header", "query"}:
		logger.warning("config: unknown GEMINI_KEY_LOCATION=%s; using header", key_location)
		key_location = "header"

	shield_mode = "LIVE" if pick("SHIELD_MODE").upper() == "LIVE" else "DRY_RUN"

	settings = Settings(
		openai_api_key=pick("OPENAI_API_KEY"),
		google_api_key=pick("GOOGLE_GENERATIVE_AI_API_KEY"),
		openai_model=pick("OPENAI_MODEL", Settings.model_fields["openai_model"].default),
		gemini_model=pick("GEMINI_MODEL", Settings.model_fields["gemini_model"].default),
		openai_base_url=pick("OPENAI_BASE_URL", Settings.model_fields["openai_base_url"].default).rstrip("/"),
		gemini_base_url=pick("GEMINI_BASE_URL", Settings.model_fields["gemini_base_url"].default).rstrip("/"),
		gemini_key_location=key_location,
		environment=environment,
		site_url=pick("SITE_URL"),
		extra_origins=[o.strip() for o in pick("ALLOWED_ORIGINS").split(",") if o.strip()],
		session_secret=pick("SESSION_SECRET"),
		session_cookie=pick("SESSION_COOKIE", "__session"),
		shield_key=pick("SHIELD_KEY"),
		shield_mode=shield_mode,
		shield_url=pick("SHIELD_URL", Settings.model_fields["shield_url"].default),
		enable_ai_features=_flag(env.get("ENABLE_AI_FEATURES"), True),
		allow_search_engines=_flag(env.get("ALLOW_SEARCH_ENGINES"), False),
	)

	if not settings.openai_api_key:
		logger.warning("config: OPENAI_API_KEY is not set; provider=openai will fail until provided")
	if not settings.google_api_key:
		logger.warning("config: GOOGLE_GENERATIVE_AI_API_KEY is not set; provider=google will fail until provided")
	if not settings.session_secret:
		logger.warning("config: SESSION_SECRET is not set; authenticated endpoints will reject every caller")
	return settings

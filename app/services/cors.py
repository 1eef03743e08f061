from __future__ import annotations
from typing import Dict, Optional

from app.config import Settings

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"
MAX_AGE = "86400"


def cors_headers(origin: Optional[str], settings: Settings) -> Dict[str, str]:
	headers: Dict[str, str] = {}
	if origin and origin in settings.allowed_origins:
		headers["Access-Control-Allow-Origin"] = origin
		headers["Vary"] = "Origin"
	elif settings.environment == "development":
		headers["Access-Control-Allow-Origin"] = "*"
	headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
	headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
	headers["Access-Control-Max-Age"] = MAX_AGE
	return headers


def content_security_policy(nonce: Optional[str] = None) -> str:
	script_src = "script-src 'self'"
	if nonce:
		script_src += f" 'nonce-{nonce}'"
	directives = [
		"default-src 'self'",
		script_src,
		"style-src 'self' 'unsafe-inline'",
		"img-src 'self' data: blob: https:",
		"font-src 'self' data:",
		"connect-src 'self' https://api.openai.com https://generativelanguage.googleapis.com",
		"object-src 'none'",
		"base-uri 'self'",
		"form-action 'self'",
		"frame-ancestors 'none'",
		"upgrade-insecure-requests",
	]
	return "; ".join(directives)


def security_headers(settings: Settings, nonce: Optional[str] = None) -> Dict[str, str]:
	headers = {
		"Content-Security-Policy": content_security_policy(nonce),
		"X-Content-Type-Options": "nosniff",
		"X-Frame-Options": "DENY",
		"X-XSS-Protection": "1; mode=block",
		"Referrer-Policy": "strict-origin-when-cross-origin",
		"Permissions-Policy": "camera=(), microphone=(), geolocation=()",
	}
	# HTTPS only
	if settings.is_production:
		headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
	return headers

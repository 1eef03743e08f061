from __future__ import annotations


class GatewayError(Exception):
    """Base for errors that map to a fixed HTTP status and an {error: message} body."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    status_code = 400


class UnknownProviderError(GatewayError):
    status_code = 400


class AuthenticationError(GatewayError):
    status_code = 401


class AbuseShieldError(GatewayError):
    status_code = 403


class FeatureDisabledError(GatewayError):
    status_code = 503


class MissingCredentialError(GatewayError):
    status_code = 500


class UpstreamError(GatewayError):
    """Provider call failed: transport error, non-2xx status, or an unreadable envelope."""

    status_code = 500

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class SchemaValidationError(GatewayError):
    status_code = 500


class UpstreamCancelled(Exception):
    """The inbound caller went away before the provider answered."""

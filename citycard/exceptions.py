"""
Error taxonomy for the weather card service.

Services raise these; only the route handlers turn them into HTTP responses.
"""

from typing import Optional


class CityCardError(Exception):
    """Base class for all service errors."""


class InvalidInput(CityCardError):
    """Missing or blank request parameters (city, coordinates)."""


class UpstreamUnavailable(CityCardError):
    """A required external binding (bucket, API key) is not configured."""


class UpstreamTransportError(CityCardError):
    """Non-2xx status or network failure from an external service."""

    def __init__(
        self,
        service: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        self.service = service
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"{service} request failed: {body}"
        else:
            message = f"{service} request failed: {status_code} {body[:500]}"
        super().__init__(message)


class MalformedUpstreamResponse(CityCardError):
    """The upstream answered 2xx but the payload lacks what we need."""


class AnalysisFailure(CityCardError):
    """Architecture profile analysis failed; the caller uses the fallback profile."""


class AnalysisTransportError(AnalysisFailure):
    """The analysis request itself failed."""


class AnalysisEmptyResponse(AnalysisFailure):
    """The analysis response carried no text."""


class AnalysisInvalidJson(AnalysisFailure):
    """The analysis text did not contain a parseable JSON object."""

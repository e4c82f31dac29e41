"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Enveloppe: `{code, message, trace_id}` (+ `details` optionnels). Les erreurs du pipeline
(`InsightUnavailableError`) deviennent une 503 `INSIGHT_UNAVAILABLE` portant le message
destiné à l'utilisateur.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from cosmic_insights.core.constants import HTTP_STATUS_SERVICE_UNAVAILABLE
from cosmic_insights.domain.errors import InsightUnavailableError

log = logging.getLogger(__name__)


class ErrorCodes:
    """Codes d'erreur exposés par l'API."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INSIGHT_UNAVAILABLE = "INSIGHT_UNAVAILABLE"
    HTTP_ERROR = "HTTP_ERROR"


_HTTP_CODES = {
    404: ErrorCodes.NOT_FOUND,
    422: ErrorCodes.VALIDATION_ERROR,
    503: "SERVICE_UNAVAILABLE",
}


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Trace ID depuis les en-têtes (X-Trace-ID, puis X-Request-ID)."""
    return request.headers.get("X-Trace-ID") or request.headers.get("X-Request-ID")


def handle_insight_unavailable(request: Request, exc: InsightUnavailableError) -> JSONResponse:
    """Toutes les étapes ont échoué: 503 avec le message "réessayez plus tard"."""
    trace_id = extract_trace_id(request)
    log.warning(
        "Insight unavailable",
        extra={"feature": exc.feature, "trace_id": trace_id},
    )
    return create_error_response(
        status_code=HTTP_STATUS_SERVICE_UNAVAILABLE,
        code=ErrorCodes.INSIGHT_UNAVAILABLE,
        message=exc.user_message,
        trace_id=trace_id,
        details={"feature": exc.feature, "retryable": True},
    )


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with standard envelope."""
    trace_id = extract_trace_id(request)
    code = _HTTP_CODES.get(exc.status_code, ErrorCodes.HTTP_ERROR)
    log.error(
        "HTTP exception occurred",
        extra={
            "code": code,
            "error_message": str(exc.detail),
            "status_code": exc.status_code,
            "trace_id": trace_id,
        },
    )
    return create_error_response(
        status_code=exc.status_code,
        code=code,
        message=str(exc.detail),
        trace_id=trace_id,
    )


def install_error_handlers(app: FastAPI) -> None:
    """Enregistre les handlers d'enveloppe sur l'application."""
    app.add_exception_handler(InsightUnavailableError, handle_insight_unavailable)
    app.add_exception_handler(HTTPException, handle_http_exception)

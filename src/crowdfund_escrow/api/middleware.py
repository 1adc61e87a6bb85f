"""FastAPI middleware for request tracing, error handling, and CORS.

Middleware stack (applied bottom-up):
    1. RequestIDMiddleware — injects X-Request-ID into every request/response
    2. ErrorHandlerMiddleware — catches domain exceptions -> structured JSON errors
    3. CORSMiddleware — handles browser-based clients
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from crowdfund_escrow.domain.exceptions import (
    CampaignNotFoundError,
    ClaimTooEarlyError,
    CrowdfundError,
    DeadlinePassedError,
    HostError,
    NotOwnerError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)

# Contract guard rejections and the HTTP status they surface as.
_GUARD_STATUS: dict[type[CrowdfundError], int] = {
    NotOwnerError: 403,
    DeadlinePassedError: 409,
    ClaimTooEarlyError: 409,
}


def _error_response(status_code: int, exc: CrowdfundError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


# ---------------------------------------------------------------------------
# 1. Request ID Middleware
# ---------------------------------------------------------------------------
class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject a unique X-Request-ID into every request for log correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# 2. Error Handler Middleware
# ---------------------------------------------------------------------------
class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch domain exceptions and return structured JSON error responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except CampaignNotFoundError as exc:
            logger.warning("campaign.not_found", error=exc.message)
            return _error_response(404, exc)
        except (NotOwnerError, DeadlinePassedError, ClaimTooEarlyError) as exc:
            logger.warning("contract.call_rejected", code=exc.code, error=exc.message)
            return _error_response(_GUARD_STATUS[type(exc)], exc)
        except HostError as exc:
            logger.error("ledger.host_error", code=exc.code, error=exc.message)
            return _error_response(400, exc)
        except CrowdfundError as exc:
            logger.error("domain.error", error=exc.message, code=exc.code)
            return _error_response(400, exc)
        except ValueError as exc:
            logger.warning("request.invalid_value", error=str(exc))
            return JSONResponse(
                status_code=400,
                content={"error": "INVALID_VALUE", "message": str(exc)},
            )
        except Exception as exc:
            logger.exception("unhandled.error", error=str(exc))
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                },
            )


# ---------------------------------------------------------------------------
# Setup function
# ---------------------------------------------------------------------------
def setup_middleware(app: FastAPI) -> None:
    """Register all middleware on the FastAPI application.

    Order matters — middleware is applied bottom-up, so the last added
    middleware runs first.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(ErrorHandlerMiddleware)

    app.add_middleware(RequestIDMiddleware)

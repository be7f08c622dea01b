"""
Storefront Backend — Bearer Header Guard Middleware
=====================================================

What:  Rejects mutating product requests that carry no usable bearer token
       before the request body is read.
Why:   FastAPI parses (and spools) the whole multipart body before route
       dependencies run, so `require_identity` alone would only reject an
       anonymous upload after receiving it.
How:   Header-only check on POST/PUT/DELETE under /api/product/. The token is
       verified here too; `require_identity` still runs on the route and
       stays the authority for everything else it guards (e.g. /api/me).
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from storefront.exceptions import StorefrontError, UnauthenticatedError
from storefront.middleware.request_id import request_id_var
from storefront.schemas.common import ErrorResponse
from storefront.security import decode_access_token, extract_bearer_token

logger = logging.getLogger(__name__)

GUARDED_METHODS = {"POST", "PUT", "DELETE"}
GUARDED_PREFIX = "/api/product/"


def is_guarded(method: str, path: str) -> bool:
    return method in GUARDED_METHODS and path.startswith(GUARDED_PREFIX)


def _reject(exc: StorefrontError) -> JSONResponse:
    body = ErrorResponse(message=exc.message, errors=exc.errors, request_id=request_id_var.get(""))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers={"WWW-Authenticate": "Bearer"},
    )


class BearerHeaderGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not is_guarded(request.method, request.url.path):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        try:
            if token is None:
                raise UnauthenticatedError()
            decode_access_token(token)
        except StorefrontError as exc:
            logger.warning(
                "[%s] %s %s rejected before body intake: %s",
                request_id_var.get(""),
                request.method,
                request.url.path,
                exc.message,
            )
            return _reject(exc)

        return await call_next(request)

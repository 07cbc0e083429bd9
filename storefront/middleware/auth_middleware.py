from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..core.config import Config
from ..enums import ErrorCode, UserRole
from ..schemas.auth import CurrentUser


api_version = Config.API_VERSION

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


class CustomAuthMiddleWare(BaseHTTPMiddleware):
    """
    Attaches the caller identity verified by the upstream gateway.

    The gateway authenticates the request and forwards the user id and role
    in the ``X-User-Id`` / ``X-User-Role`` headers. This middleware parses
    them into ``request.state.user``. Documentation and health endpoints are
    public; every other route answers 401 when no identity is present.

    Methods
    -------
    dispatch(request: Request, call_next):
        Parses the identity headers and allows or denies access based on the
        request path.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.user = None

        # Always allow OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path.rstrip("/")

        allowed_paths = [
            "/health",

            # Documentation endpoints
            f"/api/{api_version}/openapi.json",
            f"/api/{api_version}/docs",
            f"/api/{api_version}/redoc",
        ]

        # Root is matched exactly, the rest as prefixes
        if path == "" or any(path == prefix or path.startswith(prefix + "/") for prefix in allowed_paths):
            return await call_next(request)

        user_id = request.headers.get(USER_ID_HEADER)
        if not user_id:
            return self._unauthorized("Not authenticated! Please login again to proceed.")

        try:
            request.state.user = CurrentUser(
                id=user_id,
                role=request.headers.get(USER_ROLE_HEADER, UserRole.CUSTOMER.value),
            )
        except ValidationError:
            return self._unauthorized("Invalid caller identity.")

        return await call_next(request)

    def _unauthorized(self, detail: str) -> JSONResponse:
        return JSONResponse(
            content={"code": ErrorCode.UNAUTHORIZED.value, "detail": detail},
            status_code=401
        )

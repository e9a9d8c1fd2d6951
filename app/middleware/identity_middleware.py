import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


class IdentityMiddleware(BaseHTTPMiddleware):
    """
    Attaches the caller's identity to the request.

    Credentials are verified upstream by the auth layer, which forwards the
    authenticated user in the ``X-User-ID`` header. This middleware trusts
    that header and only rejects requests that do not carry it.

    The middleware expects ``app.state.config`` to hold ``excluded_paths``.
    """

    def __init__(self, app):
        super().__init__(app)
        self.logger = logging.getLogger(__name__)
        self.logger.debug("IdentityMiddleware initialized")

    async def dispatch(self, request: Request, call_next):
        """
        Process incoming requests for identification.

        Args:
            request (Request): The incoming request
            call_next: The next middleware or route handler in the chain

        Returns:
            Response: The response from the next handler or an error response
        """
        excluded_paths = request.app.state.config["excluded_paths"]

        if request.url.path in excluded_paths or request.method == "OPTIONS":
            return await call_next(request)

        user_id = request.headers.get("X-User-ID", "").strip()
        if not user_id:
            return self.missing_identity_response()

        request.state.user_id = user_id
        return await call_next(request)

    def missing_identity_response(self):
        """
        Generate response for requests without an authenticated user.

        Returns:
            JSONResponse: Error response for missing identity
        """
        self.logger.warning("Missing X-User-ID header.")
        return JSONResponse(
            content={
                "status": "error",
                "data": "missing_authorization_headers",
                "message": "Missing authorization headers",
                "details": None,
            },
            status_code=401,
        )

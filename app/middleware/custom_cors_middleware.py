import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class CustomCORSMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        config = request.app.state.config
        allowed_origins = config["allowed_origins"]

        origin = request.headers.get("origin")
        logging.debug(f"Handling CORS for origin: {origin}")

        # Requests without an Origin header are not subject to CORS
        if not origin:
            return await call_next(request)

        if origin in allowed_origins or "*" in allowed_origins:
            if request.method == "OPTIONS":
                response = Response(status_code=204)
            else:
                response = await call_next(request)

            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = "OPTIONS, GET, PUT"
            response.headers["Access-Control-Allow-Headers"] = (
                "Authorization, Content-Type, X-User-ID"
            )
        else:
            logging.warning(f"Origin not allowed: {origin}")
            response = Response(
                content='{"detail": "CORS origin not allowed"}',
                status_code=403,
                media_type="application/json",
            )

        return response

"""
FastAPI application factory.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from vis_site.api.middleware import setup_cors
from vis_site.api.observability import ObservabilityMiddleware, generate_request_id, get_request_id
from vis_site.api.routes import quiz as quiz_routes
from vis_site.config import settings
from vis_site.exceptions import VisSiteError, exception_to_http_status
from vis_site.logging_config import log_error
from vis_site.quiz import QuizGenerator


def create_app(*, quiz_generator: QuizGenerator | None = None) -> FastAPI:
    app = FastAPI(
        title=f"{settings.site_name} Functions",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    setup_cors(app)
    app.add_middleware(ObservabilityMiddleware)

    # Built lazily from settings on first use when not injected.
    app.state.quiz_generator = quiz_generator

    @app.get("/v1/health")
    def health(response: Response) -> dict:
        response.headers["Cache-Control"] = "no-store"
        return {"ok": True}

    app.include_router(quiz_routes.router)

    def _error_headers(request: Request) -> dict[str, str]:
        rid = request.headers.get("x-request-id") or get_request_id() or generate_request_id()
        return {"X-Request-ID": rid, "Cache-Control": "no-store"}

    @app.exception_handler(VisSiteError)
    def _vis_site_error(request: Request, exc: VisSiteError) -> JSONResponse:
        return JSONResponse(
            status_code=exception_to_http_status(exc),
            content={"error": exc.message},
            headers=_error_headers(request),
        )

    @app.exception_handler(Exception)
    def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        log_error("unhandled_exception", exc, path=request.url.path)
        return JSONResponse(status_code=500, content={"error": "internal_error"}, headers=_error_headers(request))

    return app


app = create_app()

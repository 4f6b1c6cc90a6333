from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shipquote.core.settings import S
from shipquote.metrics import metrics_endpoint, metrics_middleware, set_app_info
from shipquote.routers.misc import router as misc_router
from shipquote.routers.shipping import router as shipping_router

logger = logging.getLogger(__name__)


_NON_OBJECT_BODY = ("model_attributes_type", "dict_type", "model_type")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        return "Invalid JSON"
    if any(e.get("type") in _NON_OBJECT_BODY and tuple(e.get("loc", ())) == ("body",) for e in errors):
        return "Invalid JSON"
    if errors:
        loc = ".".join(str(p) for p in errors[0].get("loc", ()) if p != "body")
        msg = errors[0].get("msg", "Invalid request")
        return f"{loc}: {msg}" if loc else msg
    return "Invalid request"


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": _validation_message(exc)}, status_code=400)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Server error"}, status_code=500)


def create_app() -> FastAPI:
    logging.basicConfig(level=S.log_level)
    app = FastAPI(title="Shipping Quote Service", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=S.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    if S.metrics_enabled:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics")(metrics_endpoint)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(misc_router)
    app.include_router(shipping_router)

    return app

app = create_app()

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from arcomposer.bridge.routes import get_bridge, router, set_bridge
from arcomposer.bridge.service import ComposerBridge
from arcomposer.common.error_envelope import BRIDGE_MESSAGE_KIND, INVALID_MESSAGE, build_error_envelope
from arcomposer.config.runtime_config import config_snapshot
from arcomposer.logging.bridge_log import BridgeLogHandler, attach_bridge_logging, detach_bridge_logging

logger = logging.getLogger(__name__)

_log_handler: Optional[BridgeLogHandler] = None


async def _http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        return JSONResponse(content=detail, status_code=exc.status_code)
    envelope = build_error_envelope(
        code="http.exception",
        message=str(detail) if detail else "HTTP exception",
        status_code=exc.status_code,
    )
    return JSONResponse(content=envelope.to_body(), status_code=exc.status_code)


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    envelope = build_error_envelope(
        code=INVALID_MESSAGE,
        message="Validation failed",
        status_code=400,
        resource_kind=BRIDGE_MESSAGE_KIND,
        details={"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]},
    )
    return JSONResponse(content=envelope.to_body(), status_code=400)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(HTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)


def create_app(bridge: Optional[ComposerBridge] = None) -> FastAPI:
    app = FastAPI(title="AR Composer Bridge")
    register_error_handlers(app)

    global _log_handler
    if bridge is not None:
        set_bridge(bridge)
    # One forwarding handler per process, bound to the current bridge.
    detach_bridge_logging(_log_handler)
    _log_handler = attach_bridge_logging(get_bridge().log_sink)

    app.include_router(router)
    logger.debug(f"Bridge app created (forward_logs={_log_handler is not None})")

    @app.get("/health")
    async def health_check():
        return {
            "service": "arcomposer",
            "status": "ok",
            "time": time.time(),
            "objects": len(get_bridge().registry),
            "config": config_snapshot(),
        }

    return app

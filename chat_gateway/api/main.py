import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.config_manager import ConfigManager
from ..core.error_handling import ErrorHandler, ErrorContext
from ..core.logging import logger
from ..services.chat_service.chat_service import ChatService
from .middleware import RequestLoggerMiddleware
from .routes import router


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


def create_app(httpx_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """
    Build the gateway application.

    Args:
        httpx_client: client to use for the inference backend; when omitted
            one is created at startup and closed at shutdown

    Configuration is read from the environment when the app starts, so a
    missing OLLAMA_BASE_URL stops startup before any request is served.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config_manager = ConfigManager()
        app.state.config_manager = config_manager

        owns_client = httpx_client is None
        app.state.httpx_client = httpx_client or httpx.AsyncClient()
        app.state.chat_service = ChatService(config_manager, app.state.httpx_client)

        config_manager.start_reloader_task()
        logger.info("Chat gateway started", ollama_base_url=config_manager.ollama_base_url,
                    default_model=config_manager.default_model)
        try:
            yield
        finally:
            await config_manager.stop_reloader_task()
            if owns_client:
                await app.state.httpx_client.aclose()
            logger.info("Chat gateway stopped")

    app = FastAPI(title="Ollama Chat Gateway", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        context = ErrorContext(
            request_id=getattr(request.state, 'request_id', 'unknown'),
            endpoint_path=request.url.path
        )
        http_exception = ErrorHandler.handle_validation_error(_format_validation_errors(exc), context)
        return JSONResponse(status_code=http_exception.status_code, content={"detail": http_exception.detail})

    app.add_middleware(RequestLoggerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ConfigManager.list_env("CORS_ORIGINS", ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))

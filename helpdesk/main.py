import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.config import settings
from helpdesk.middleware.error_handler import ErrorHandlerMiddleware
from helpdesk.middleware.logging import RequestLoggingMiddleware
from helpdesk.reports.router import router as reports_router

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.PrintLoggerFactory(),
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Helpdesk Survey Reports",
        version="0.1.0",
        docs_url="/docs",
    )

    cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(reports_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

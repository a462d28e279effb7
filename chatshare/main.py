import logging
from typing import Dict

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from chatshare.config import settings
from chatshare.routes import router as api_router

QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging() -> None:
    """Configure logging for the application."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    access_level = logging.WARNING if settings.is_production else logging.INFO
    logging.getLogger("uvicorn.access").setLevel(access_level)
    # page_fetcher logs each share page fetch itself
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"{settings.PROJECT_NAME} logging at {settings.LOG_LEVEL} ({settings.ENVIRONMENT_NAME})")


configure_logging()

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.VERSION,
    description="Extract conversations from ChatGPT, Claude and Gemini share pages",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

app.include_router(api_router)


@app.get("/")
async def root() -> Dict[str, str]:
    """Get basic API information."""
    return {"message": settings.API_TITLE}


@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "healthy"}


async def metrics() -> Response:
    """Prometheus exposition of the parse counters."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if settings.METRICS_ENABLED:
    app.add_api_route("/metrics", metrics, methods=["GET"], include_in_schema=False)


def main() -> None:
    uvicorn.run(
        "chatshare.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )


if __name__ == "__main__":
    main()

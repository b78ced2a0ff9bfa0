import uvicorn

from app.core.config import settings


def main() -> None:
    """Serve the API on ``settings.HOST:settings.PORT``."""
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()

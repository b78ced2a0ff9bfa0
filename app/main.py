import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import APIError
from app.core.logging import setup_logging, get_logger, request_id_ctx, request_route_ctx
from app.core.responses import convert_validation_errors, create_generic_error
from app.db.session import engine
from app.db.models import Base

logger = get_logger("app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: connect to the database before serving."""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("Could not connect to the database; not serving")
        raise
    logger.info("Connected to database")

    yield

    await engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "## Library Borrowing API\n\n"
        "- **Books** – create, list, fetch, update and delete catalog entries\n"
        "- **Borrow** – lend copies of a book and view the borrowed-quantity summary\n\n"
        "Every response is wrapped in a `{success, message, data}` envelope; errors use "
        "`{success: false, message, error: {name, errors?}}`."
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Liveness and health checks"},
        {"name": "Books", "description": "Book catalog management"},
        {"name": "Borrow", "description": "Borrowing and borrowed-quantity summary"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID and timing middleware
@app.middleware("http")
async def request_middleware(request: Request, call_next):
    req_id = str(uuid.uuid4())[:8]
    request_id_ctx.set(req_id)
    request_route_ctx.set(f"{request.method} {request.url.path}")

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({duration:.3f}s)"
    )

    response.headers["X-Request-ID"] = req_id
    return response


# ──────────────────────────── Error envelopes ────────────────────────────


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=convert_validation_errors(exc.errors()),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and unsupported methods are both "no such route"
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=create_generic_error("Route not found", "NotFoundError"),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=create_generic_error(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_generic_error("Internal server error"),
    )


# ──────────────────────────── Routes ────────────────────────────


@app.get("/", tags=["Health"], summary="Liveness", description="Confirms the server is running.")
async def root():
    return {"message": "library management server is running"}


@app.get("/health", tags=["Health"], summary="Health check", description="Returns the current health status and API version.")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


from app.api.endpoints.books import router as books_router
from app.api.endpoints.borrow import router as borrow_router

app.include_router(books_router, prefix="/api")
app.include_router(borrow_router, prefix="/api")

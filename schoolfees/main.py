import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schoolfees.api.v1.auth.router import router as auth_router
from schoolfees.api.v1.categories.router import router as categories_router
from schoolfees.api.v1.classes.router import router as classes_router
from schoolfees.api.v1.dashboard.router import router as dashboard_router
from schoolfees.api.v1.payments.router import router as payments_router
from schoolfees.api.v1.reports.router import router as reports_router
from schoolfees.api.v1.students.router import router as students_router
from schoolfees.core.config import settings
from schoolfees.core.logging_config import configure_logging
from schoolfees.db.session import init_db

logger = logging.getLogger(__name__)


def _error_body(message: str) -> dict:
    return {"status": "error", "message": message}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(_validation_message(exc)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Database ready")
    yield


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="School Fee Management API", lifespan=lifespan)

    # CORS: allow the browser client to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(students_router)
    app.include_router(payments_router)
    app.include_router(classes_router)
    app.include_router(reports_router)
    app.include_router(dashboard_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "success", "message": "Server is healthy"}

    return app


app = create_app()

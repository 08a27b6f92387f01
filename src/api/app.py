import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from libs.result import Error
from src.app.services.unit_of_work import UnitOfWorkTimeoutError
from src.domain.errors import ErrorCode
from .error import ClientError, ServerError

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    if exc.base_error.details:
        error_dict["details"] = list(exc.base_error.details)
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": ErrorCode.SERVER_ERROR.value, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}: {exc.base_error.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_store_timeout(request: Request, exc: UnitOfWorkTimeoutError):
    return await handle_server_error(request, ServerError(Error(ErrorCode.SERVER_ERROR, str(exc))))


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))

    error_dict = {
        "code": ErrorCode.VALIDATION_ERROR.value,
        "message": "Request validation failed",
        "details": details,
    }
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": error_dict})


async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
    )
    return response


async def sweep_sessions(interval_seconds: float) -> None:
    """
    Periodically delete expired and revoked session records.

    Runs until cancelled; a failed pass is logged and retried next interval.
    """
    from config import ApplicationConfig
    from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
    from src.app.use_cases.admin import PurgeSessionsUseCase
    from src.depends import AsyncSessionLocal

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with AsyncSessionLocal() as session:
                uow = SqlAlchemyUnitOfWork(session, ApplicationConfig.DB_TIMEOUT_SECONDS)
                await PurgeSessionsUseCase(uow).execute()
        except Exception:
            logger.exception("Session sweep failed")


def create_app(ApplicationConfig) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from src.depends import engine

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

        sweeper = None
        if ApplicationConfig.SESSION_SWEEP_INTERVAL_SECONDS > 0:
            sweeper = asyncio.create_task(
                sweep_sessions(ApplicationConfig.SESSION_SWEEP_INTERVAL_SECONDS)
            )

        yield

        if sweeper is not None:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
        await engine.dispose()

    app = FastAPI(title="Session Auth API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if ApplicationConfig.ENABLE_LOGGING_MIDDLEWARE:
        app.middleware("http")(log_requests)

    from src.api.routes import admin, auth, health_check, sessions, user

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(user.router, tags=["User"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(UnitOfWorkTimeoutError, handle_store_timeout)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    return app

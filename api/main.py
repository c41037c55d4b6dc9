from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.workflow_config import WorkflowConfig
from database import Base, engine as db_engine
import models  # noqa: F401 - registers tables on Base.metadata
from logging_config import setup_logging
from redis_client import RedisClient
from routers import status, workflows_router
from workflow.engine import WorkflowEngine
from workflow.errors import (
    ExecutionNotFound,
    InvalidWorkflowType,
    MissingRequiredInput,
    WorkflowError,
)
from workflow.events import WorkflowEventPublisher
from workflow.state_manager import create_state_manager

from dotenv import load_dotenv
load_dotenv()

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    InvalidWorkflowType: 400,
    MissingRequiredInput: 422,
    ExecutionNotFound: 404,
}


async def build_engine() -> WorkflowEngine:
    """Construct the engine for the configured state backend"""
    if WorkflowConfig.STATE_BACKEND == "memory":
        logger.info("Workflow state backend: in-memory")
        return WorkflowEngine(create_state_manager("memory"))

    redis_client = await RedisClient.get_client()
    logger.info(f"Workflow state backend: redis ({WorkflowConfig.get_redis_url()})")
    return WorkflowEngine(
        create_state_manager("redis", redis_client=redis_client),
        event_publisher=WorkflowEventPublisher(redis_client),
    )


def create_app(engine: WorkflowEngine = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        engine: Pre-built workflow engine (tests); built in the lifespan otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ensure tables exist
        Base.metadata.create_all(bind=db_engine)

        owns_engine = getattr(app.state, "engine", None) is None
        if owns_engine:
            app.state.engine = await build_engine()
        logger.info("🚀 Workflow engine started")

        yield

        if owns_engine:
            await app.state.engine.shutdown()
            await RedisClient.close()
            app.state.engine = None

    app = FastAPI(
        title="Marketing Workflow API",
        version="1.0.0",
        openapi_version="3.1.0",
        description="Launch, track and cancel multi-step marketing workflows",
        lifespan=lifespan,
    )
    app.state.engine = engine

    origins = os.getenv("CORS_ORIGINS", "*").split(",")

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include Routers
    app.include_router(status.router)
    app.include_router(workflows_router.router)

    # Exception handlers
    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(request: Request, exc: WorkflowError):
        status_code = next(
            (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
            500,
        )
        content = {"error": exc.message, "code": exc.code}
        if isinstance(exc, MissingRequiredInput):
            content["missing"] = exc.missing
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "Validation error", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    return app


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold exception instances
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg", "input")}
        for error in exc.errors()
    ]


setup_logging()
app = create_app()

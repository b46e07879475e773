from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import InvalidInput, StoreUnavailable, TodoAppError, Unauthenticated, clean_errors
from .logging_config import configure_logging, get_logger
from .repositories import get_repositories
from .routers import accounts as accounts_router
from .routers import sessions as sessions_router
from .routers import todos as todos_router
from .security import TokenService
from .services import CredentialStore, TodoStore
from .settings import Settings, get_settings

logger = get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "accounts", "description": "Account registration and the current account."},
    {"name": "sessions", "description": "Log in with email and password to obtain a bearer token."},
    {
        "name": "todos",
        "description": "Per-account CRUD operations for Todo items with search and pagination.",
    },
]


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        err = InvalidInput(detail=clean_errors(exc.errors()))
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(StoreUnavailable)
    async def store_exception_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
        logger.error(
            "Storage failure while handling %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={"error": "ServerError", "message": "Internal server error", "detail": None},
        )

    @app.exception_handler(TodoAppError)
    async def app_exception_handler(request: Request, exc: TodoAppError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The settings (and therefore the token signing secret) are fixed for the
    lifetime of the returned app; stores and the token service are attached to
    app.state and reached from endpoints through the dependencies in auth.py.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Todo Vault",
        description="Backend API for personal todo lists with token-based authentication.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    account_repo, todo_repo = get_repositories(settings)
    app.state.settings = settings
    app.state.credential_store = CredentialStore(account_repo)
    app.state.todo_store = TodoStore(todo_repo)
    app.state.token_service = TokenService(
        settings.jwt_secret, ttl=timedelta(minutes=settings.jwt_expire_minutes)
    )

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(accounts_router.router)
    app.include_router(sessions_router.router)
    app.include_router(todos_router.router)

    logger.info("Application created with %s backend", settings.persistence_backend)
    return app


app = create_app()

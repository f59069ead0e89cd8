"""FastAPI application exposing the user directory behind bearer tokens."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .directory import UserDirectory, UserNotFoundError, parse_positive_int
from .models import User, UserPage
from .security import TokenAuth, TokenIssuer

logger = logging.getLogger("userhub.service")

ENDPOINTS: Dict[str, str] = {
    "login": "POST /login",
    "getUsers": "GET /users?page=1&limit=5",
    "createUser": "POST /users",
    "deleteUser": "DELETE /users/:id",
}


JSONScalar = Union[str, int, float, bool, None]


def scalar_to_text(value: JSONScalar) -> Optional[str]:
    """Render a submitted JSON scalar as text; falsy values count as absent."""

    if not value:
        return None
    if isinstance(value, bool):
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class LoginRequest(BaseModel):
    username: JSONScalar = None


class LoginResponse(BaseModel):
    token: str
    username: str
    message: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str


class UserListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: List[UserResponse]
    page: int
    limit: int
    total_pages: int = Field(..., alias="totalPages")
    total_users: int = Field(..., alias="totalUsers")


class CreateUserRequest(BaseModel):
    name: JSONScalar = None
    email: JSONScalar = None


class CreateUserResponse(BaseModel):
    user: UserResponse
    message: str


class DeleteUserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    deleted_user: UserResponse = Field(..., alias="deletedUser")


def user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, name=user.name, email=user.email)


def page_to_response(page: UserPage) -> UserListResponse:
    return UserListResponse(
        users=[user_to_response(user) for user in page.users],
        page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
        total_users=page.total_users,
    )


def register_routes(
    app: FastAPI,
    directory: UserDirectory,
    issuer: TokenIssuer,
) -> None:
    """Expose the public and token-protected JSON endpoints on ``app``."""

    current_username = TokenAuth(issuer)

    @app.get("/")
    async def index() -> Dict[str, object]:
        return {"message": "Backend API is running!", "endpoints": dict(ENDPOINTS)}

    @app.post("/login", response_model=LoginResponse)
    async def login(payload: Optional[LoginRequest] = Body(default=None)) -> LoginResponse:
        username = scalar_to_text(payload.username) if payload is not None else None
        try:
            token = issuer.issue(username)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        logger.info("Issued access token for %s", username)
        return LoginResponse(token=token, username=username or "", message="Login successful")

    @app.get("/users", response_model=UserListResponse)
    async def list_users(
        page: Optional[str] = None,
        limit: Optional[str] = None,
        username: str = Depends(current_username),
    ) -> UserListResponse:
        return page_to_response(directory.list(page, limit))

    @app.post("/users", status_code=status.HTTP_201_CREATED, response_model=CreateUserResponse)
    async def create_user(
        payload: Optional[CreateUserRequest] = Body(default=None),
        username: str = Depends(current_username),
    ) -> CreateUserResponse:
        name = scalar_to_text(payload.name) if payload is not None else None
        email = scalar_to_text(payload.email) if payload is not None else None
        try:
            user = directory.create(name, email)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        logger.info("User %s created directory entry #%s (%s)", username, user.id, user.email)
        return CreateUserResponse(user=user_to_response(user), message="User created successfully")

    @app.delete("/users/{user_id}", response_model=DeleteUserResponse)
    async def delete_user(
        user_id: str,
        username: str = Depends(current_username),
    ) -> DeleteUserResponse:
        # Identifiers that do not parse cannot match any record.
        parsed = parse_positive_int(user_id, 0)
        try:
            deleted = directory.delete(parsed)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from exc

        logger.info("User %s deleted directory entry #%s", username, deleted.id)
        return DeleteUserResponse(message="User deleted successfully", deleted_user=user_to_response(deleted))


def register_error_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": <message>}``."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError):
        logger.debug("Rejected malformed request: %s", exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body"},
        )


def create_app(
    *,
    settings: Settings | None = None,
    directory: UserDirectory | None = None,
    issuer: TokenIssuer | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the user directory."""

    app_settings = settings or load_settings()
    app_directory = directory if directory is not None else UserDirectory(
        default_page_size=app_settings.default_page_size
    )
    app_issuer = issuer or TokenIssuer(app_settings.jwt_secret, ttl=app_settings.token_ttl)

    app = FastAPI(
        title="User Directory API",
        version="1.0.0",
        description="In-memory user directory guarded by stateless JWT bearer tokens.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = app_settings
    app.state.directory = app_directory
    app.state.issuer = app_issuer

    register_routes(app, app_directory, app_issuer)
    register_error_handlers(app)

    return app


__all__ = ["create_app", "register_routes", "register_error_handlers"]

# server/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Type

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from db.repository import UserRepository
from server.config import Settings, get_settings
from server.logging_config import setup_logging
from tracker.errors import PersistenceError, UserNotFound
from tracker.exercise_schema import ExerciseCreate, LogQuery, UserCreate
from tracker.get_log import get_user_log
from tracker.log_exercise import append_exercise, exercise_response
from tracker.users import list_users, register_user

logger = logging.getLogger(__name__)


def get_repository(request: Request) -> UserRepository:
    """Return the store handle opened for this application."""
    repo = getattr(request.app.state, "repository", None)
    if repo is None:
        raise RuntimeError("Document store is not open; start the app through its lifespan.")
    return repo


FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_body(request: Request) -> Any:
    """Decode a JSON or HTML-form body into plain Python values."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_TYPES:
        form = await request.form()
        return dict(form)
    try:
        return await request.json()
    except ValueError as exc:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "Body must be JSON or form data", "input": None}]
        ) from exc


def body_of(model: Type[BaseModel]):
    """Dependency validating the request body, JSON or form-encoded, as ``model``."""

    async def dependency(request: Request) -> BaseModel:
        data = await _read_body(request)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors()) from exc

    return dependency


def _not_found(exc: UserNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _server_error(exc: PersistenceError) -> HTTPException:
    return HTTPException(status_code=500, detail="Internal Server Error")


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[UserRepository] = None,
) -> FastAPI:
    """
    Build the exercise tracker API.

    Parameters:
        settings: Configuration; read from the environment when omitted.
        repository: An already open store. When omitted, the lifespan opens
            one on ``settings.database_url`` at startup and closes it on
            shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = getattr(app.state, "repository", None) is None
        if owns_store:
            app.state.repository = UserRepository.from_url(settings.database_url)
        logger.info("Document store ready at %s", app.state.repository.url)
        try:
            yield
        finally:
            if owns_store:
                app.state.repository.close()
                app.state.repository = None
                logger.info("Document store closed")

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.state.repository = repository

    # --- CORS (configurable) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.cors_origins == ["*"]:
        logger.warning("CORS is permissive ('*'). Restrict it in production via CORS_ORIGINS.")
    else:
        logger.info("CORS allowed origins: %s", settings.cors_origins)

    # --- Routes ---
    @app.get("/", include_in_schema=False)
    def root():
        return {
            "status": "ok",
            "info": (
                "/api/hello, /health, /api/users (GET|POST), "
                "/api/users/{id}/exercises (POST), /api/users/{id}/logs?from&to&limit"
            ),
        }

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/api/hello")
    def hello():
        return {"message": "hello exercise tracker"}

    @app.get("/api/users")
    def api_list_users(repo: UserRepository = Depends(get_repository)) -> List[dict]:
        """List every user as ``{username, id}``."""
        try:
            users = list_users(repo)
        except PersistenceError as exc:
            logger.exception("Listing users failed")
            raise _server_error(exc) from exc
        return [{"username": u.username, "id": u.id} for u in users]

    @app.post("/api/users")
    def api_create_user(
        payload: UserCreate = Depends(body_of(UserCreate)),
        repo: UserRepository = Depends(get_repository)):
        """Register a user and return ``{username, id}``."""
        try:
            user = register_user(repo, payload)
        except PersistenceError as exc:
            logger.exception("Creating user failed")
            raise _server_error(exc) from exc
        return {"username": user.username, "id": user.id}

    @app.post("/api/users/{user_id}/exercises")
    def api_add_exercise(
        user_id: str,
        payload: ExerciseCreate = Depends(body_of(ExerciseCreate)),
        repo: UserRepository = Depends(get_repository),
    ):
        """Append an exercise to the user's log and echo it back with the owner."""
        try:
            user, exercise = append_exercise(repo, user_id, payload)
        except UserNotFound as exc:
            raise _not_found(exc) from exc
        except PersistenceError as exc:
            logger.exception("Logging exercise failed")
            raise _server_error(exc) from exc
        return exercise_response(user, exercise)

    @app.get("/api/users/{user_id}/logs")
    def api_user_log(
        request: Request,
        user_id: str,
        date_from: Optional[str] = Query(None, alias="from", description="Earliest date, inclusive"),
        date_to: Optional[str] = Query(None, alias="to", description="Latest date, inclusive"),
        limit: Optional[str] = Query(None, description="Maximum number of entries"),
        repo: UserRepository = Depends(get_repository),
    ):
        """
        Return the user document, or the filtered ``{username, id, count, log}``
        envelope when the request has a query string.
        """
        query = None
        if request.query_params:
            try:
                query = LogQuery(date_from=date_from, date_to=date_to, limit=limit)
            except ValidationError as exc:
                raise RequestValidationError(exc.errors()) from exc
        try:
            return get_user_log(repo, user_id, query)
        except UserNotFound as exc:
            raise _not_found(exc) from exc
        except PersistenceError as exc:
            logger.exception("Reading log failed")
            raise _server_error(exc) from exc

    return app

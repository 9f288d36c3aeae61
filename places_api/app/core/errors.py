"""
Application error taxonomy.

Services raise subclasses of ``ApiError``; the application installs
exception handlers (see ``register_exception_handlers``) which render
every failure as ``{"message": ...}`` with the status code carried by
the error.  Request validation errors and framework HTTP errors are
rendered the same way so clients only ever see one error shape.
"""

import logging
from typing import TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unknown error occurred!"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputs(ApiError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid inputs passed, please check your data."


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Could not find the requested resource."


class PlaceNotFound(NotFound):
    default_message = "Could not find a place for the provided id."


class UserNotFound(NotFound):
    default_message = "Could not find user for the provided id."


class NoPlacesFound(NotFound):
    default_message = "Could not find places for the provided user id."


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to edit this place."


class InvalidCredentials(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid credentials, could not log you in."


class UserExists(ApiError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "User exists already, please login instead."


class GeocodingError(ApiError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Could not find location for the specified address."


class StoreError(ApiError):
    """The store could not be reached or a read/write failed."""

    default_message = "Something went wrong, please try again later."


class StoreUnavailable(StoreError):
    default_message = "Something went wrong, could not find a place."


class LookupFailed(StoreError):
    default_message = "Something went wrong, could not update place."


class UserLookupFailed(StoreError):
    default_message = "Creating place failed, please try again."


class UpdateFailed(StoreError):
    default_message = "Something went wrong, could not update place."


class SignupFailed(StoreError):
    default_message = "Signing up failed, please try again later."


class LoginFailed(StoreError):
    default_message = "Logging in failed, please try again later."


class TransactionAborted(ApiError):
    """A write spanning places and users could not be committed."""

    default_message = "Something went wrong, the change was not saved."


class CreateFailed(TransactionAborted):
    default_message = "Creating place failed, please try again."


class DeleteFailed(TransactionAborted):
    default_message = "Something went wrong, could not delete place."


def _error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, InvalidInputs.default_message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "Could not find this route."
    else:
        message = str(exc.detail)
    return _error_response(exc.status_code, message, getattr(exc, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the uniform ``{"message": ...}`` error handlers on ``app``."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)


def validate_fields(model: type[ModelT], **fields) -> ModelT:
    """Build ``model`` from form fields, mapping failures to ``InvalidInputs``."""
    try:
        return model(**fields)
    except ValidationError as exc:
        logger.debug("Invalid %s: %s", model.__name__, exc.errors())
        raise InvalidInputs() from exc

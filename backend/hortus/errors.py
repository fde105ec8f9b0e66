import logging
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pymysql import MySQLError

logger = logging.getLogger(__name__)

METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"


class HortusError(Exception):
    """Base class of every error raised by the API service."""


# --- Startup -----------------------------------------------------------------

class ConfigError(HortusError):
    """A setting is present but malformed."""


class ConfigMissingError(ConfigError):
    """The store connection target is not set."""


class ConnectionFailedError(HortusError):
    """The store could not be reached while connecting."""


class SchemaMissingError(HortusError):
    """The required tables are absent from the target schema."""


# --- Client errors -------------------------------------------------------------

class ValidationError(HortusError, ValueError):
    """Rejected request input. The message is sent back to the caller."""


class BadRequestError(ValidationError):
    """Malformed request: unparsable body or path identifier."""


class EmptyNameError(ValidationError):
    pass


class NameTooLongError(ValidationError):
    pass


class InvalidEncodingError(ValidationError):
    pass


class NonAsciiCharacterError(ValidationError):
    pass


class MethodNotAllowedError(HortusError):
    def __init__(self, allowed: Iterable[str]):
        super().__init__(METHOD_NOT_ALLOWED_MESSAGE)
        self.allowed = tuple(allowed)


# --- Storage -------------------------------------------------------------------

class StorageError(HortusError):
    """A store call failed while handling a request.

    The message is the underlying driver error text, echoed to the caller.
    """


class QueryFailedError(StorageError):
    pass


class InsertFailedError(StorageError):
    pass


class PlantNotFoundError(StorageError):
    """No plant row matches the requested id.

    Answered with 500 like any other storage failure: existing callers rely on
    that status.
    """

    def __init__(self, plant_id: int):
        super().__init__(f"no plant with id {plant_id}")
        self.plant_id = plant_id


class StoreUnavailableError(StorageError):
    """The store cannot serve the call right now (pool exhausted, connection lost).

    Retryable; answered with 503 and a Retry-After header.
    """


def _text(status_code: int, message: str, headers: dict | None = None) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    - Validation errors -> 400 with the validation message.
    - Disallowed methods -> 405 with a fixed message and an Allow header.
    - Storage errors -> 500 with the driver error text, 503 when retryable.
    - Stray PyMySQL errors -> 500 with the driver error text.
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> PlainTextResponse:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return _text(400, str(exc))

    @app.exception_handler(MethodNotAllowedError)
    async def method_not_allowed_handler(
        request: Request, exc: MethodNotAllowedError
    ) -> PlainTextResponse:
        logger.info("%s %s: method not allowed", request.method, request.url.path)
        return _text(405, METHOD_NOT_ALLOWED_MESSAGE, headers={"Allow": ", ".join(exc.allowed)})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(
        request: Request, exc: StoreUnavailableError
    ) -> PlainTextResponse:
        retry_after = getattr(request.app.state, "retry_after", 1)
        logger.warning("%s %s: store unavailable: %s", request.method, request.url.path, exc)
        return _text(503, str(exc), headers={"Retry-After": str(retry_after)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> PlainTextResponse:
        logger.error("%s %s: storage failure: %s", request.method, request.url.path, exc)
        return _text(500, str(exc))

    @app.exception_handler(MySQLError)
    async def mysql_error_handler(request: Request, exc: MySQLError) -> PlainTextResponse:
        logger.error("%s %s: database error: %s", request.method, request.url.path, exc)
        return _text(500, str(exc))

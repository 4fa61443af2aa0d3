from __future__ import annotations

import logging
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    REFERENCE_NOT_FOUND = "reference_not_found"
    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_ID = "invalid_id"
    UNSUPPORTED_METHOD = "unsupported_method"
    DECODE_ERROR = "decode_error"
    STORE_ERROR = "store_error"


class ApiError(Exception):
    kind: ErrorKind = ErrorKind.STORE_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ApiError):
    kind = ErrorKind.NOT_FOUND


class ReferenceNotFound(ApiError):
    kind = ErrorKind.REFERENCE_NOT_FOUND


class MissingParameter(ApiError):
    kind = ErrorKind.MISSING_PARAMETER


class InvalidParameter(ApiError):
    kind = ErrorKind.INVALID_PARAMETER


class InvalidID(ApiError):
    kind = ErrorKind.INVALID_ID


class UnsupportedMethod(ApiError):
    kind = ErrorKind.UNSUPPORTED_METHOD


class DecodeError(ApiError):
    kind = ErrorKind.DECODE_ERROR


class StoreError(ApiError):
    kind = ErrorKind.STORE_ERROR


class JSONUTF8Response(JSONResponse):
    media_type = "application/json; charset=utf-8"


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONUTF8Response:
    return JSONUTF8Response(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        where = ".".join(loc)
        parts.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    return "invalid request body: " + "; ".join(parts)


async def _handle_api_error(request: Request, exc: ApiError) -> JSONUTF8Response:
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind.value, exc.message)
    return error_response(exc.message)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONUTF8Response:
    return await _handle_api_error(request, DecodeError(_describe_validation_error(exc)))


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONUTF8Response:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return await _handle_api_error(request, UnsupportedMethod(f"unsupported method: {request.method}"))
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response("not found", status.HTTP_404_NOT_FOUND)
    return error_response(str(exc.detail), exc.status_code)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)

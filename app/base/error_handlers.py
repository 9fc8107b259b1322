import traceback

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.base.exceptions import MatchingError, TransportError
from app.base.logging_config import setup_logger
from app.base.metrics import api_exception_counter

logger = setup_logger("error_handler", log_file="errors.log")


def register_exception_handlers(app):
    @app.exception_handler(MatchingError)
    async def matching_exception_handler(request: Request, exc: MatchingError):
        error_type = type(exc).__name__
        if isinstance(exc, TransportError):
            logger.error(f"[{error_type}] {exc.detail} | Path={request.url.path}")
        else:
            logger.warning(f"[{error_type}] {exc.detail} | Path={request.url.path}")
        api_exception_counter.labels(type=error_type).inc()
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": error_type,
                "message": exc.user_message,
                "detail": exc.detail,
                "status_code": exc.status_code,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"[HTTPException] {exc.detail} | Path={request.url.path}")
        api_exception_counter.labels(type="http").inc()
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "status_code": exc.status_code},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[ValidationError] Path={request.url.path} | {exc.errors()}")
        api_exception_counter.labels(type="validation").inc()
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request parameters", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"[UnhandledError] {str(exc)}\n{traceback.format_exc()}")
        api_exception_counter.labels(type="unhandled").inc()
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raw exception object from a validator
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors

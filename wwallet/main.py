import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware
from pydantic import ValidationError

from wwallet.core.config import settings
from wwallet.core.errors import InvalidInput, SessionExpired, WalletError
from wwallet.api.admin import router as admin_router
from wwallet.api.api_settings import router as api_settings_router
from wwallet.api.auth import router as auth_router
from wwallet.api.gift_codes import router as gift_codes_router
from wwallet.api.notifications import router as notifications_router
from wwallet.api.public import router as public_router
from wwallet.api.wallet import router as wallet_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="WWallet API", version="1.0.0")


def error_response(exc: WalletError) -> JSONResponse:
    content = {
        "success": False,
        "error": exc.kind,
        "message": exc.message,
    }
    if exc.details:
        content["details"] = exc.details
    if isinstance(exc, SessionExpired):
        content["sessionExpired"] = True
    return JSONResponse(status_code=exc.status_code, content=content)


def _first_error(errors) -> str:
    # extract first error message nicely
    if not errors:
        return InvalidInput.default_message
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{field}: {error['msg']}" if field else error["msg"]


@app.exception_handler(WalletError)
async def wallet_exception_handler(request: Request, exc: WalletError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.kind, request.url.path, exc.message)
    else:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.kind)
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(InvalidInput(_first_error(exc.errors())))


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    return error_response(InvalidInput(_first_error(exc.errors())))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "InternalError", "message": "Something went wrong"},
    )


app.include_router(auth_router, tags=["auth"])
app.include_router(wallet_router, tags=["transactions"])
app.include_router(gift_codes_router, tags=["gift-codes"])
app.include_router(notifications_router, tags=["notifications"])
app.include_router(api_settings_router, tags=["api-settings"])
app.include_router(public_router, tags=["public"])
app.include_router(admin_router, tags=["admin"])

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
    https_only=settings.HTTPS_ONLY,
)


@app.get("/health")
def health():
    return {"ok": True, "service": "wwallet"}

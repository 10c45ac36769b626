import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pharmacy_pos.api.v1.routes_checkout import router as checkout_router
from pharmacy_pos.api.v1.routes_inventory import router as inventory_router
from pharmacy_pos.api.v1.routes_products import router as products_router
from pharmacy_pos.core.errors import BusinessError, NotFoundError, RemoteError, ValidationFailure
from pharmacy_pos.core.logging import setup_logging
from pharmacy_pos.db.base import init_models

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_models()
    yield


app = FastAPI(title="Pharmacy POS", lifespan=lifespan)

app.include_router(checkout_router)
app.include_router(products_router)
app.include_router(inventory_router)


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    return _failure(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _failure(status.HTTP_404_NOT_FOUND, exc.message)


@app.exception_handler(BusinessError)
async def business_error_handler(request: Request, exc: BusinessError):
    return _failure(status.HTTP_409_CONFLICT, exc.message)


@app.exception_handler(RemoteError)
async def remote_error_handler(request: Request, exc: RemoteError):
    logger.warning(f"Upstream failure on {request.url.path}: {exc.message}")
    return _failure(status.HTTP_502_BAD_GATEWAY, exc.message)


@app.get("/health")
async def health():
    return {"status": "ok"}

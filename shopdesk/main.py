import logging
from contextlib import asynccontextmanager

uvicorn_logger = logging.getLogger("uvicorn")

app_logger = logging.getLogger("shopdesk")
app_logger.setLevel(logging.DEBUG)
app_logger.handlers = uvicorn_logger.handlers
app_logger.propagate = False

for logger_name in ["shopdesk.services.order", "shopdesk.services.notification", "shopdesk.core.push_client"]:
    module_logger = logging.getLogger(logger_name)
    module_logger.setLevel(logging.INFO)

from fastapi import FastAPI, HTTPException, status, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from shopdesk.core.config import settings
from shopdesk.core.exceptions import (
    OrderNotFoundError,
    ShopNotFoundError,
    ProductNotFoundError,
    InvalidTransitionError,
)
from shopdesk.core.push_client import push_client
from shopdesk.api.dependencies import get_dispatcher
from shopdesk.api.v1.orders import router as orders_router
from shopdesk.api.v1.revenue import router as revenue_router
from shopdesk.api.v1.products import router as products_router
from shopdesk.api.v1.profile import router as profile_router
from shopdesk.api.v1.ingest import router as ingest_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup - logging configured")
    yield
    await get_dispatcher().drain()
    await push_client.close()


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Order lifecycle and revenue for shop owners",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.include_router(orders_router)
app.include_router(revenue_router)
app.include_router(products_router)
app.include_router(profile_router)
app.include_router(ingest_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(OrderNotFoundError)
@app.exception_handler(ShopNotFoundError)
@app.exception_handler(ProductNotFoundError)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(InvalidTransitionError)
async def transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "current": exc.current, "requested": exc.requested},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )

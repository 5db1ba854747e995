# product_catalog/main.py

"""
FastAPI Catalog Service API.
Exposes GET/POST/PUT/DELETE over a single product catalog endpoint whose
state is one JSON snapshot in blob storage. Each mutating request reads the
snapshot, changes it in memory and writes it back whole.
"""
import logging
import os
import sys
import time
from typing import List

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .blob_store import build_blob_store
from .exceptions import (
    CatalogError,
    InternalError,
    MethodNotAllowedError,
    ValidationError,
)
from .schemas import (
    DeleteAck,
    ErrorResponse,
    Product,
    ProductCreate,
    ProductDeleteRequest,
    ProductUpdateRequest,
)
from .service import CatalogService

# -----------------------------
# Configure Logging
# -----------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Suppress noisy logs from third-party libraries for cleaner output
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.INFO)
logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(
    logging.WARNING
)

CATALOG_PATH = "/api/products"
STARTUP_RETRIES = int(os.getenv("CATALOG_STARTUP_RETRIES", "5"))
STARTUP_RETRY_DELAY_SECONDS = 3

catalog_service = CatalogService(build_blob_store())


def get_catalog_service() -> CatalogService:
    """Dependency providing the catalog service; overridden in tests."""
    return catalog_service


# -----------------------------
# FastAPI App Initialization
# -----------------------------
app = FastAPI(
    title="Catalog Service API",
    description="Manages the product catalog snapshot for the storefront",
    version="1.0.0",
)

# Client and service may be served from different origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# --- Error Handlers ---
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return await catalog_error_handler(request, MethodNotAllowedError())
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are reported like any other missing input: 400 with one message
    errors = exc.errors()
    message = None
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{where}: {first['msg']}" if where else first["msg"]
    logger.warning(f"Rejected request body: {message}")
    return await catalog_error_handler(request, ValidationError(message))


# --- FastAPI Event Handlers ---
@app.on_event("startup")
async def startup_event():
    """
    Prepares the blob backend (creates the container if needed).
    Retries a few times; if storage stays unreachable the service still
    starts, since reads degrade to an empty catalog.
    """
    store = catalog_service.store
    for i in range(STARTUP_RETRIES):
        try:
            logger.info(
                f"Preparing blob store (attempt {i+1}/{STARTUP_RETRIES})..."
            )
            store.ensure_ready()
            logger.info("Blob store ready.")
            return
        except Exception as e:
            logger.warning(f"Failed to prepare blob store: {e}")
            if i < STARTUP_RETRIES - 1:
                logger.info(f"Retrying in {STARTUP_RETRY_DELAY_SECONDS} seconds...")
                time.sleep(STARTUP_RETRY_DELAY_SECONDS)
    logger.error(
        f"Blob store not ready after {STARTUP_RETRIES} attempts; serving with degraded storage."
    )


# --- Root Endpoint ---
@app.get("/", status_code=status.HTTP_200_OK, summary="Root endpoint")
async def read_root():
    """
    Returns a welcome message for the Catalog Service.
    """
    return {"message": "Welcome to the Catalog Service!"}


# --- Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK, summary="Health check endpoint")
async def health_check():
    return {"status": "ok", "service": "catalog-service"}


# -----------------------------
# Catalog Endpoints
# -----------------------------


def _run(operation, *args, status_code=status.HTTP_200_OK):
    """
    Runs a catalog operation and renders its JSON response. Catalog errors
    pass through; anything else, including a result that cannot be encoded
    as JSON, becomes a 500 carrying the underlying message.
    """
    try:
        return JSONResponse(status_code=status_code, content=operation(*args))
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error in {operation.__name__}: {e}", exc_info=True)
        raise InternalError(str(e) or None)


@app.options(CATALOG_PATH, summary="Preflight for the catalog endpoint")
async def catalog_options():
    return Response(status_code=status.HTTP_200_OK)


@app.get(
    CATALOG_PATH,
    response_model=List[Product],
    summary="Return the full catalog snapshot",
    responses={500: {"model": ErrorResponse}},
)
def list_products(service: CatalogService = Depends(get_catalog_service)):
    """
    Returns every product in the current snapshot.
    A missing or unreadable snapshot yields an empty list, never an error.
    """
    logger.info("Listing catalog products")
    return _run(service.list_products)


@app.post(
    CATALOG_PATH,
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_product(
    product: ProductCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    """
    Creates a product and appends it to the snapshot.

    - `name`, `price` and `category` are required; otherwise 400 and nothing is written.
    - The returned record carries the newly assigned `id`.
    """
    logger.info(f"Creating product: {product.name}")
    return _run(service.create_product, product, status_code=status.HTTP_201_CREATED)


@app.put(
    CATALOG_PATH,
    response_model=Product,
    summary="Merge updates into an existing product",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def update_product(
    request: ProductUpdateRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    """
    Shallow-merges `updates` into the product identified by `id`.
    Fields not named in `updates` keep their values.
    """
    logger.info(f"Updating product with ID: {request.id}")
    return _run(service.update_product, request)


@app.delete(
    CATALOG_PATH,
    response_model=DeleteAck,
    summary="Remove a product by ID",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def delete_product(
    request: ProductDeleteRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    """
    Removes the product with the given `id`. Unknown ids are a no-op success.
    """
    logger.info(f"Attempting to delete product with ID: {request.id}")
    return _run(service.delete_product, request)

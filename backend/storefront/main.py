import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.config import get_settings
from storefront.database import init_db
from storefront.routers.attributes import router as attributes_router
from storefront.routers.categories import router as categories_router
from storefront.routers.imports import router as imports_router
from storefront.routers.products import router as products_router
from storefront.routers.variants import router as variants_router
from storefront.services.errors import ConfigurationError, VariantEngineError

settings = get_settings()

logging.basicConfig(level=settings.log_level, format=settings.log_format)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the attribute catalog on startup."""
    logger.info(f"Starting {settings.app_name} ({settings.environment})")
    init_db()
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    description="Product variant generation and bulk import",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Requests the engine refuses before touching the database."""
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(VariantEngineError)
async def variant_engine_error_handler(request: Request, exc: VariantEngineError):
    logger.error(f"Variant engine failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report body/query validation errors as "field: message" strings."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(x) for x in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    logger.info(f"Validation error on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation Error", "errors": errors}
    )


app.include_router(categories_router, prefix=settings.api_prefix)
app.include_router(attributes_router, prefix=settings.api_prefix)
app.include_router(products_router, prefix=settings.api_prefix)
app.include_router(variants_router, prefix=settings.api_prefix)
app.include_router(imports_router, prefix=settings.api_prefix)


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version
    }

import logging
import pathlib
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from almoxtrack.api import auth, movements, products, reports, uploads
from almoxtrack.config import settings
from almoxtrack.database import SessionLocal, init_db
from almoxtrack.exceptions import AlmoxTrackError
from almoxtrack.services.auth_service import ensure_default_admin

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with SessionLocal() as db:
        ensure_default_admin(db)
    logger.info("%s ready (delete policy: %s)", settings.APP_NAME, settings.PRODUCT_DELETE_POLICY)
    yield


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Stockroom items, entry/exit/return ledger and movement dashboards",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(AlmoxTrackError)
async def almoxtrack_error_handler(request: Request, exc: AlmoxTrackError):
    """Map typed service errors to their HTTP status with a structured body."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s\n%s", request.method, request.url.path, traceback.format_exc())
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": AlmoxTrackError.code})


for module in (auth, products, movements, reports, uploads):
    app.include_router(module.router, prefix=API_PREFIX)

# Product images, referenced by URL from Product.image
upload_dir = pathlib.Path(settings.UPLOAD_DIR)
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")


@app.get("/health")
def health():
    return {"status": "ok"}

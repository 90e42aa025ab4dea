from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import InterfaceError, OperationalError
from contextlib import asynccontextmanager

from core.config import APP_VERSION
from core.errors import InvalidArgument, InventoryError, Unavailable
from core.logging import configure_logging, get_logger
from db.database import create_db_and_tables
from routers.root import router as root_router
from routers.freezers import router as freezers_router
from routers.drawers import router as drawers_router
from routers.products import router as products_router
from routers.storage import router as storage_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Freezer Inventory API",
    description="API for tracking what is stored in which freezer drawer, and until when",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    logger.warning("request_failed", path=request.url.path, kind=exc.kind, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = InvalidArgument("; ".join(messages) or "Invalid request")
    logger.warning("request_invalid", path=request.url.path, detail=error.message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def _database_unavailable(request: Request, exc: Exception):
    logger.error("database_unavailable", path=request.url.path, error=str(exc))
    error = Unavailable("The database is currently unavailable, retry later")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.add_exception_handler(OperationalError, _database_unavailable)
app.add_exception_handler(InterfaceError, _database_unavailable)
app.add_exception_handler(ConnectionRefusedError, _database_unavailable)


app.include_router(root_router, tags=["root"])
app.include_router(freezers_router, prefix="/freezers", tags=["freezers"])
app.include_router(drawers_router, prefix="/drawers", tags=["drawers"])
app.include_router(products_router, prefix="/products", tags=["products"])
app.include_router(storage_router, prefix="/storage", tags=["storage"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)

# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import SessionLocal, init_db
from populate_db import seed_database
from repositories.memory import MemoryRepository, MemoryStore
from utils.errors import InventoryError
from utils.locks import KeyedLock
from utils.logging_setup import configure_logging

# Router imports
from routes.auth import router as auth_router
from routes.logs import router as logs_router
from routes.inventory import router as inventory_router
from routes.transactions import router as transactions_router
from routes.exchange import router as exchange_router
from routes.bom import router as bom_router
from routes.layout import router as layout_router
from routes.uploads import router as uploads_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    init_db()

    # One lock registry per process, shared by every request
    app.state.item_locks = KeyedLock()
    app.state.memory_store = MemoryStore() if settings.STORAGE_BACKEND == "memory" else None

    db = SessionLocal()
    try:
        repo = MemoryRepository(app.state.memory_store) if app.state.memory_store is not None else None
        seed_database(db, repo)
    finally:
        db.close()

    logger.info("Inventory API started (storage=%s)", settings.STORAGE_BACKEND)
    yield


app = FastAPI(title="Inventory Ledger API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid data", "errors": jsonable_encoder(exc.errors())},
    )


# Router registration
app.include_router(auth_router)
app.include_router(logs_router)
app.include_router(inventory_router)
app.include_router(transactions_router)
app.include_router(exchange_router)
app.include_router(bom_router)
app.include_router(layout_router)
app.include_router(uploads_router)


@app.get("/")
def read_root():
    return {"message": "Inventory Ledger API is running"}

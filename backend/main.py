# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from services.errors import InventoryError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Import routerów
from routes.auth import router as auth_router
from routes.logs import router as logs_router
from routes.catalog import router as catalog_router
from routes.stock import router as stock_router
from routes.equipment import routers as equipment_routers
from routes.consumables import router as consumables_router
from routes.stats import router as stats_router
from routes.reports import router as reports_router


# Inicjalizacja (tables are created on startup, not on import)
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(title="IT Inventory API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
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
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Rejestracja routerów
app.include_router(auth_router)
app.include_router(logs_router)
app.include_router(catalog_router)
app.include_router(stock_router)
for equipment_router in equipment_routers:
    app.include_router(equipment_router)
app.include_router(consumables_router)
app.include_router(stats_router)
app.include_router(reports_router)


@app.get("/")
def read_root():
    return {"message": "IT Inventory API is running"}

# main.py

from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from dotenv import load_dotenv

load_dotenv()

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database.connection import MONGODB_DB, ensure_indexes, get_client, get_database
from auth.dependencies import get_current_admin
from rides.transitions import RideError

# Import routers
from users.users import router as users_router
from drivers.drivers import router as drivers_router
from auth.auth import router as auth_router
from admin.admin import router as admin_router
from rides.rides import router as rides_router
from fares.fares import router as fares_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "drivers", "rides", "rates")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the MongoDB client on startup and close it on shutdown."""
    app.mongodb_client = get_client()
    app.mongodb = get_database(app.mongodb_client)
    logger.info("Connected to MongoDB database %s", MONGODB_DB)
    await ensure_indexes(app.mongodb)
    yield
    app.mongodb_client.close()
    logger.info("MongoDB connection closed")


app = FastAPI(title="Maxim Ride-Hailing API", version="1.0.0", lifespan=lifespan)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(RideError)
async def ride_exception_handler(request: Request, exc: RideError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include all routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(drivers_router)
app.include_router(rides_router)
app.include_router(fares_router)
app.include_router(admin_router)


@app.get("/")
async def health_check():
    return {"message": "Maxim Ride-Hailing API is running!", "timestamp": datetime.utcnow()}


@app.get("/api/debug/db-status")
async def db_status(request: Request, admin=Depends(get_current_admin)):
    counts = {}
    for name in COLLECTIONS:
        counts[name] = await request.app.mongodb[name].count_documents({})
    return {"database": MONGODB_DB, "connection": "OK", "counts": counts}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))

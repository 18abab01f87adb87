from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from bson import ObjectId
from fastapi import HTTPException
from pymongo import ASCENDING, DESCENDING
from typing import Any, Dict, Optional
import logging
import os

logger = logging.getLogger(__name__)

MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "maximDB")

# Server error code for a unique index violation.
DUPLICATE_KEY = 11000


def get_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(MONGODB_URL)


def get_database(client: AsyncIOMotorClient) -> AsyncIOMotorDatabase:
    return client[MONGODB_DB]


async def ensure_indexes(db) -> None:
    """
    Create the indexes the API relies on. Email uniqueness backs up the
    registration check, and the unique rate version serialises rate edits.
    """
    await db["users"].create_index("email", unique=True)
    await db["drivers"].create_index("email", unique=True)
    await db["rides"].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    await db["rides"].create_index("customer_id")
    await db["rides"].create_index("driver_id")
    await db["rates"].create_index("version", unique=True)
    logger.info("MongoDB indexes ensured")


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {label}.")
    return ObjectId(value)


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Turn a raw Mongo document into a JSON-ready dict with string ids."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        elif isinstance(value, ObjectId):
            out[key] = str(value)
        elif isinstance(value, dict):
            out[key] = serialize_doc(value)
        else:
            out[key] = value
    return out

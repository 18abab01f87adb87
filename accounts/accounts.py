# accounts.py
# Customers and admins live in "users", drivers in "drivers"; lookups return typed models.

from fastapi import HTTPException
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from database.connection import DUPLICATE_KEY, serialize_doc
from models.account import AccountKind, COLLECTION_FOR_KIND, account_from_doc

logger = logging.getLogger(__name__)

ALL_KINDS = (AccountKind.CUSTOMER, AccountKind.DRIVER, AccountKind.ADMIN)


def _collections_for(kinds: Iterable[AccountKind]) -> List[Tuple[str, List[str]]]:
    """Group the requested kinds by collection, preserving first-seen order."""
    grouped: Dict[str, List[str]] = {}
    for kind in kinds:
        grouped.setdefault(COLLECTION_FOR_KIND[kind], []).append(kind.value)
    return list(grouped.items())


async def _find_one(db, query: Dict[str, Any], kinds: Iterable[AccountKind]):
    for collection, roles in _collections_for(kinds):
        doc = await db[collection].find_one({**query, "role": {"$in": roles}})
        if doc:
            return account_from_doc(serialize_doc(doc))
    return None


async def find_account_by_email(db, email: str, kinds: Iterable[AccountKind] = ALL_KINDS):
    return await _find_one(db, {"email": email.lower()}, kinds)


async def find_account_by_id(db, account_id: ObjectId, kinds: Iterable[AccountKind] = ALL_KINDS):
    return await _find_one(db, {"_id": account_id}, kinds)


async def email_in_use(db, email: str) -> bool:
    return await find_account_by_email(db, email) is not None


async def create_account(db, kind: AccountKind, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert a new account document and return it with its id.
    Emails are unique across every account kind.
    """
    if await email_in_use(db, fields["email"]):
        raise HTTPException(status_code=409, detail="An account with this email already exists.")
    now = datetime.utcnow()
    doc = {
        **fields,
        "email": fields["email"].lower(),
        "role": kind.value,
        "is_blocked": False,
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await db[COLLECTION_FOR_KIND[kind]].insert_one(doc)
    except PyMongoError as exc:
        if getattr(exc, "code", None) == DUPLICATE_KEY:
            raise HTTPException(status_code=409, detail="An account with this email already exists.")
        raise
    doc["_id"] = result.inserted_id
    logger.info("Registered %s account %s", kind.value, result.inserted_id)
    return doc


async def update_account(db, kind: AccountKind, account_id: ObjectId, fields: Dict[str, Any]):
    """Apply ``fields`` to an account and return the updated model, or None if it is gone."""
    doc = await db[COLLECTION_FOR_KIND[kind]].find_one_and_update(
        {"_id": account_id, "role": kind.value},
        {"$set": {**fields, "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        return None
    logger.info("Updated %s account %s: %s", kind.value, account_id, sorted(fields))
    return account_from_doc(serialize_doc(doc))


async def delete_account(db, account_id: ObjectId, kinds: Iterable[AccountKind] = ALL_KINDS) -> Optional[AccountKind]:
    for collection, roles in _collections_for(kinds):
        doc = await db[collection].find_one_and_delete({"_id": account_id, "role": {"$in": roles}})
        if doc:
            return AccountKind(doc["role"])
    return None

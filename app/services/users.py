import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


class EmailAlreadyInUse(Exception):
    pass


def create_user_profile(
    users: Collection,
    email: str,
    display_name: str,
    phone_number: str,
    password_hash: str,
) -> Dict[str, Any]:
    """Crea el perfil del usuario en la colección `users`"""
    if users.find_one({"email": email}):
        raise EmailAlreadyInUse(email)

    now = datetime.now(timezone.utc)
    doc = {
        "_id": uuid.uuid4().hex,
        "displayName": display_name,
        "email": email,
        "phoneNumber": phone_number,
        "password_hash": password_hash,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        users.insert_one(doc)
    except DuplicateKeyError as e:
        raise EmailAlreadyInUse(email) from e
    logger.info(f"Perfil creado para {doc['_id']}")
    return doc


def get_user_by_email(users: Collection, email: str) -> Optional[Dict[str, Any]]:
    return users.find_one({"email": email})


def get_user_profile(users: Collection, uid: str) -> Optional[Dict[str, Any]]:
    return users.find_one({"_id": uid})


def update_user_profile(users: Collection, uid: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Actualiza solo los campos recibidos y renueva `updatedAt`"""
    if not changes:
        return get_user_profile(users, uid)
    update = dict(changes)
    update["updatedAt"] = datetime.now(timezone.utc)
    users.update_one({"_id": uid}, {"$set": update})
    return get_user_profile(users, uid)


def profile_to_response(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "uid": doc["_id"],
        "display_name": doc.get("displayName", ""),
        "email": doc.get("email", ""),
        "phone_number": doc.get("phoneNumber", ""),
        "created_at": doc.get("createdAt"),
        "updated_at": doc.get("updatedAt"),
    }


def revoke_token(revoked: Collection, token_id: str, expires_at: Optional[datetime] = None) -> None:
    revoked.update_one(
        {"_id": token_id},
        {"$set": {"revokedAt": datetime.now(timezone.utc), "expiresAt": expires_at}},
        upsert=True,
    )


def is_token_revoked(revoked: Collection, token_id: Optional[str]) -> bool:
    if not token_id:
        return False
    return revoked.find_one({"_id": token_id}) is not None

# app/services/users.py

from typing import List, Optional
from app.db.mongo import users_collection, to_object_id
from app.models.user import DOCTOR_ROLE


async def get_user(user_id) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return await users_collection.find_one({"_id": oid})


async def get_users_by_ids(user_ids: list, fields: List[str]) -> dict:
    """Map user id -> projected user document."""
    if not user_ids:
        return {}
    projection = {field: 1 for field in fields}
    cursor = users_collection.find({"_id": {"$in": list(user_ids)}}, projection)
    return {user["_id"]: user async for user in cursor}


async def find_doctor_user_ids(name: str) -> list:
    """Ids of doctor-role users whose first or last name matches `name`."""
    query = {
        "$or": [
            {"first_name": {"$regex": name, "$options": "i"}},
            {"last_name": {"$regex": name, "$options": "i"}},
        ],
        "role": DOCTOR_ROLE,
    }
    cursor = users_collection.find(query, {"_id": 1})
    return [user["_id"] async for user in cursor]


async def set_user_role(user_id, role: str, session=None):
    await users_collection.update_one(
        {"_id": to_object_id(user_id)},
        {"$set": {"role": role}},
        session=session,
    )


async def set_profile_image(user_id, url: str):
    await users_collection.update_one(
        {"_id": to_object_id(user_id)},
        {"$set": {"profile_image": url}},
    )

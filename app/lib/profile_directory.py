# app/lib/profile_directory.py

import logging
from typing import Dict, Iterable

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.user import SenderProfile
from app.schemas.mongo_schema import USERS_COLLECTION

PROFILE_PROJECTION = {"username": 1, "profilePicture": 1}


class ProfileDirectory:
    """Read-only view of the display fields owned by the profile service."""

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database.get_collection(USERS_COLLECTION)
        self.logger = logging.getLogger(__name__)

    async def get_profile(self, user_id: str) -> SenderProfile:
        document = await self.collection.find_one({"_id": user_id}, PROFILE_PROJECTION)
        if document is None:
            self.logger.debug(f"No profile found for user {user_id}")
            return SenderProfile(user_id=user_id)
        return SenderProfile.model_validate(document)

    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, SenderProfile]:
        wanted = set(user_ids)
        if not wanted:
            return {}
        profiles = {user_id: SenderProfile(user_id=user_id) for user_id in wanted}
        cursor = self.collection.find({"_id": {"$in": list(wanted)}}, PROFILE_PROJECTION)
        async for document in cursor:
            profile = SenderProfile.model_validate(document)
            profiles[profile.user_id] = profile
        return profiles

# app/lib/post_directory.py

import logging
from typing import Dict, Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.post import PostSummary
from app.schemas.mongo_schema import POSTS_COLLECTION

POST_PROJECTION = {"content": 1}


class PostDirectory:
    """Read-only view of the post text owned by the post service."""

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database.get_collection(POSTS_COLLECTION)
        self.logger = logging.getLogger(__name__)

    async def get_post(self, post_id: Optional[str]) -> Optional[PostSummary]:
        if post_id is None:
            return None
        document = await self.collection.find_one({"_id": post_id}, POST_PROJECTION)
        if document is None:
            self.logger.debug(f"No post found for id {post_id}")
            return PostSummary(post_id=post_id)
        return PostSummary.model_validate(document)

    async def get_posts(self, post_ids: Iterable[Optional[str]]) -> Dict[str, PostSummary]:
        wanted = {post_id for post_id in post_ids if post_id is not None}
        if not wanted:
            return {}
        posts = {post_id: PostSummary(post_id=post_id) for post_id in wanted}
        cursor = self.collection.find({"_id": {"$in": list(wanted)}}, POST_PROJECTION)
        async for document in cursor:
            post = PostSummary.model_validate(document)
            posts[post.post_id] = post
        return posts

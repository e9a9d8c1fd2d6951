import logging
import traceback

from motor.motor_asyncio import AsyncIOMotorClient


def _sanitize_uri(uri: str) -> str:
    scheme, sep, rest = uri.partition("://")
    if "@" not in rest:
        return uri
    credentials, _, host = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}{sep}{user}:*****@{host}"


async def init_mongo(config: dict) -> AsyncIOMotorClient:
    logging.debug("Initializing MongoDB client")

    mongodb_uri = config.get("mongo_uri")
    mongo_db = config.get("mongo_db_name")

    # Validate critical configuration
    if not mongodb_uri or not mongo_db:
        raise ValueError(
            "MongoDB configuration is incomplete: mongo_uri and mongo_db_name are required."
        )

    logging.debug(f"MongoDB URI: {_sanitize_uri(mongodb_uri)}")

    try:
        mongo_client = AsyncIOMotorClient(
            mongodb_uri,
            tls=config.get("mongo_tls", False),
            tz_aware=True,
            maxPoolSize=100,
            minPoolSize=10,
        )
        await test_mongo_connection(mongo_client)
        return mongo_client
    except Exception as e:
        logging.error(f"Failed to create MongoDB client: {e}\n{traceback.format_exc()}")
        raise


def close_mongo(mongo_client: AsyncIOMotorClient | None):
    if mongo_client:
        try:
            mongo_client.close()
            logging.info("MongoDB client closed successfully.")
        except Exception as e:
            logging.error(f"Error closing MongoDB client: {e}")
    else:
        logging.warning("MongoDB client was already None during cleanup.")


async def test_mongo_connection(mongo_client: AsyncIOMotorClient):
    try:
        await mongo_client.server_info()
        logging.info("MongoDB connection is healthy.")
    except Exception as e:
        logging.error(f"Failed to connect to MongoDB: {e}")
        raise

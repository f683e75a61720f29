"""MongoDB connection and Beanie ODM initialization."""

import logging
from typing import TYPE_CHECKING

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from studentbox.config import settings

if TYPE_CHECKING:
    from beanie import Document

logger = logging.getLogger(__name__)

client: AsyncIOMotorClient | None = None
database: AsyncIOMotorDatabase | None = None


def get_document_models() -> list[type["Document"]]:
    """Document classes registered with Beanie."""
    from studentbox.models import ImportBatch, Student, User

    return [User, Student, ImportBatch]


async def init_db(
    mongodb_url: str | None = None,
    mongodb_database: str | None = None,
    motor_client: AsyncIOMotorClient | None = None,
) -> None:
    """Connect to MongoDB and register the document models.

    Registration also creates the collection indexes, including the unique
    index on ``students.id_number`` that duplicate detection relies on.

    Args:
        mongodb_url: Connection URL; defaults to the configured one.
        mongodb_database: Database name; defaults to the configured one.
        motor_client: Already connected client to use instead of creating one.
    """
    global client, database

    client = motor_client or AsyncIOMotorClient(
        mongodb_url or settings.mongodb_url,
        minPoolSize=settings.min_pool_size,
        maxPoolSize=settings.max_pool_size,
    )
    database = client[mongodb_database or settings.mongodb_database]
    logger.info("Using MongoDB database '%s'", database.name)

    await init_beanie(database=database, document_models=get_document_models())


async def close_db() -> None:
    global client, database

    if client is not None:
        client.close()
    client = None
    database = None


async def ping_db() -> bool:
    """Whether the database answers a ping."""
    if database is None:
        return False
    try:
        await database.command("ping")
    except PyMongoError as e:
        logger.warning("Database ping failed: %s", e)
        return False
    return True


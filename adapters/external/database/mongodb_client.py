from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClient

from config.settings import settings


def get_mongo_client() -> AsyncIOMotorClient:
    """
    Build the Motor client from settings.

    tz_aware keeps datetimes read back from Mongo comparable with aware UTC values.
    """
    return AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)

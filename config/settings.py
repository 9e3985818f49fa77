"""
Application configuration for spotmap-api.

Centralizes environment variables using python-dotenv.

Note:
- Spots, users and the popular-spots leaderboard live in MongoDB.
- The tile cache is process-local and sized/expired from here.
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """
    Configuration settings for the spotmap-api service.
    """

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    APP_NAME: str = os.getenv("APP_NAME", "spotmap-api")

    # Mongo
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://mongo-spotmap:27017")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "spotmap")

    # Identity service used to resolve bearer tokens into viewer ids
    AUTH_VERIFY_URL: str = os.getenv("AUTH_VERIFY_URL", "http://identity:8080/tokens/verify")
    AUTH_TIMEOUT_S: float = float(os.getenv("AUTH_TIMEOUT_S", "5.0"))

    # Map tiles
    TILE_CACHE_MAX_ENTRIES: int = int(os.getenv("TILE_CACHE_MAX_ENTRIES", "100"))
    TILE_CACHE_TTL_S: float = float(os.getenv("TILE_CACHE_TTL_S", "60"))
    TILE_MAX_RESULTS: int = int(os.getenv("TILE_MAX_RESULTS", "2000"))
    TILE_DOM_BUDGET: int = int(os.getenv("TILE_DOM_BUDGET", "300"))
    TILE_NEXT_SYNC_S: float = float(os.getenv("TILE_NEXT_SYNC_S", "60"))
    TILE_BATCH_MAX: int = int(os.getenv("TILE_BATCH_MAX", "16"))

    # Popular spots leaderboard
    LEADERBOARD_MAX_ENTRIES: int = int(os.getenv("LEADERBOARD_MAX_ENTRIES", "50"))
    LEADERBOARD_STALE_AFTER_S: float = float(os.getenv("LEADERBOARD_STALE_AFTER_S", "600"))
    LEADERBOARD_REBUILD_EVERY_S: float = float(os.getenv("LEADERBOARD_REBUILD_EVERY_S", "300"))
    LEADERBOARD_WORKER_ENABLED: bool = os.getenv("LEADERBOARD_WORKER_ENABLED", "true").lower() == "true"

    # Max ids per `$in` lookup against the users collection
    OWNER_BATCH_SIZE: int = int(os.getenv("OWNER_BATCH_SIZE", "500"))


settings = Settings()

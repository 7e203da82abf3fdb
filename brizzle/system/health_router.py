import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from brizzle import config
from brizzle.database import get_db

logger = logging.getLogger("brizzle.health")

router = APIRouter(tags=["System"])


async def ping_database(db: AsyncIOMotorDatabase) -> str:
    try:
        await db.users.find_one({}, {"_id": 1})
        return "UP"
    except PyMongoError as e:
        logger.warning("Health check: database unreachable (%s)", e.__class__.__name__)
        return "DOWN"


@router.get("/health")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Liveness plus which configuration values are present (never their values)
    """
    database = await ping_database(db)
    return {
        "success": database == "UP",
        "timestamp": datetime.utcnow().isoformat(),
        "database": database,
        "env": {
            "hasMongoUrl": bool(config.MONGO_URL),
            "hasJwtSecret": bool(config.JWT_SECRET_KEY),
            "hasResendApiKey": bool(config.RESEND_API_KEY),
            "hasSiteUrl": bool(config.SITE_URL),
        }
    }


@router.get("/version")
def get_version():
    return {"version": config.VERSION or "unknown", "status": "stable"}

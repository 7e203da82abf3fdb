import logging
from datetime import datetime
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_permissions import enforce, can_read_vocabulary
from brizzle.config import AVAILABLE_VOCAB_LEVELS
from brizzle.database import generate_id, upsert_one
from brizzle.errors import ValidationFailed
from brizzle.progress.models import MEDAL_ORDER, normalize_level, normalize_topic, topic_key

logger = logging.getLogger("brizzle.vocabulary")


def check_medal_order(flags: dict):
    """
    A tier can only be earned after the one below it.

    Raises:
        400: e.g. gold without silver
    """
    for lower, higher in zip(MEDAL_ORDER, MEDAL_ORDER[1:]):
        if flags[higher] and not flags[lower]:
            raise ValidationFailed(f"The {higher} challenge requires the {lower} challenge first")


def is_complete(row: dict) -> bool:
    return all(bool(row.get(m)) for m in MEDAL_ORDER)

# ==================== CHALLENGE PROGRESS ====================

async def record_challenge(
    db: AsyncIOMotorDatabase,
    student: AuthContext,
    level: str,
    topic: str,
    bronze: bool,
    silver: bool,
    gold: bool
) -> dict:
    """
    Save the medals a student holds for one (level, topic).

    Medals only move forward: a stored medal is kept even if the request
    sends False for it. completed_at is stamped the first time all three are
    held and stays null otherwise.
    """
    level = normalize_level(level or "")
    display_topic = normalize_topic(topic or "")
    if not level or not display_topic:
        raise ValidationFailed("Invalid request data")

    key = {"student_id": student.user_id, "level": level, "topic_key": topic_key(display_topic)}
    requested = {"bronze": bronze, "silver": silver, "gold": gold}

    existing = await db.vocabulary_progress.find_one(key, {"_id": 0}) or {}
    merged = {m: bool(existing.get(m)) or requested[m] for m in MEDAL_ORDER}
    check_medal_order(merged)

    now = datetime.utcnow()
    row = await upsert_one(
        db.vocabulary_progress,
        key,
        {
            "$max": requested,
            "$set": {"updated_at": now},
            "$setOnInsert": {
                "vocabulary_progress_id": generate_id("VOC"),
                "topic": display_topic,
                "completed_at": None,
                "created_at": now
            }
        }
    )

    complete = is_complete(row)
    if complete and row.get("completed_at") is None:
        row = await db.vocabulary_progress.find_one_and_update(
            {**key, "completed_at": None},
            {"$set": {"completed_at": now}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        ) or await db.vocabulary_progress.find_one(key, {"_id": 0})
    elif not complete and row.get("completed_at") is not None:
        row = await db.vocabulary_progress.find_one_and_update(
            key,
            {"$set": {"completed_at": None}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER
        )

    logger.info(
        "Vocabulary progress %s/%s for %s: %s",
        level, display_topic, student.user_id,
        ",".join(m for m in MEDAL_ORDER if row.get(m)) or "none"
    )
    return row


async def list_challenge_progress(
    db: AsyncIOMotorDatabase,
    principal: AuthContext,
    level: Optional[str] = None,
    topic: Optional[str] = None,
    student_id: Optional[str] = None
) -> List[dict]:
    """
    Progress rows for one student, newest first.
    Scope: all, one level, or one (level, topic).

    Raises:
        403: Reading another student's progress without being a teacher
    """
    target = student_id or principal.user_id
    enforce(can_read_vocabulary(principal, target))

    query = {"student_id": target}
    if level:
        query["level"] = normalize_level(level)
    if topic:
        query["topic_key"] = topic_key(topic)

    cursor = db.vocabulary_progress.find(query, {"_id": 0}).sort("updated_at", -1)
    return await cursor.to_list(length=None)

# ==================== WORD LISTS ====================

async def list_topics(db: AsyncIOMotorDatabase, level: str) -> List[dict]:
    """
    Topics of a level with their word counts, grouped on the normalized topic.
    Levels without a published word list return an empty list.
    """
    level = normalize_level(level)
    if level not in AVAILABLE_VOCAB_LEVELS:
        return []

    words = await db.vocabulary_words.find(
        {"level": level}, {"_id": 0, "topic": 1, "topic_key": 1}
    ).sort("created_at", 1).to_list(length=None)

    counts = {}
    names = {}
    for word in words:
        if not word.get("topic"):
            continue
        key = word.get("topic_key") or topic_key(word["topic"])
        counts[key] = counts.get(key, 0) + 1
        names.setdefault(key, normalize_topic(word["topic"]))

    topics = [{"name": names[key], "count": count} for key, count in counts.items()]
    return sorted(topics, key=lambda t: t["name"].casefold())


async def list_topic_icons(db: AsyncIOMotorDatabase, level: str) -> Dict[str, str]:
    """Topic name -> icon for a level, from the first word of each topic carrying one"""
    level = normalize_level(level)
    if level not in AVAILABLE_VOCAB_LEVELS:
        return {}

    words = await db.vocabulary_words.find(
        {"level": level, "icon": {"$nin": [None, ""]}}, {"_id": 0, "topic": 1, "topic_key": 1, "icon": 1}
    ).sort("created_at", 1).to_list(length=None)

    icons = {}
    seen = set()
    for word in words:
        key = word.get("topic_key") or topic_key(word["topic"])
        if key in seen:
            continue
        seen.add(key)
        icons[normalize_topic(word["topic"])] = word["icon"]
    return icons


async def list_words(db: AsyncIOMotorDatabase, level: str, topic: str) -> List[dict]:
    level = normalize_level(level)
    if level not in AVAILABLE_VOCAB_LEVELS:
        return []

    cursor = db.vocabulary_words.find(
        {"level": level, "topic_key": topic_key(topic)}, {"_id": 0}
    ).sort([("created_at", 1), ("word_id", 1)])
    return await cursor.to_list(length=None)


async def import_words(db: AsyncIOMotorDatabase, level: str, words: List[dict]) -> int:
    """Append words to a level's list; returns the number inserted"""
    level = normalize_level(level)
    if not level:
        raise ValidationFailed("Level is required")

    now = datetime.utcnow()
    docs = []
    for word in words:
        display_topic = normalize_topic(word["topic"])
        if not display_topic:
            raise ValidationFailed("Every word needs a topic")
        docs.append({
            "word_id": generate_id("WRD"),
            "level": level,
            "topic": display_topic,
            "topic_key": topic_key(display_topic),
            "word_english": word["word_english"],
            "pron_english": word.get("pron_english"),
            "translation_french": word.get("translation_french"),
            "icon": word.get("icon"),
            "created_at": now,
        })

    if docs:
        await db.vocabulary_words.insert_many(docs)
    logger.info("Imported %d %s words", len(docs), level)
    return len(docs)

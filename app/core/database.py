from functools import lru_cache
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from app.core.config import settings


@lru_cache
def get_mongo_client() -> MongoClient:
    """Cliente compartido; pymongo conecta de forma perezosa."""
    return MongoClient(settings.mongo_uri, tz_aware=True)


def get_mongo_db() -> Database:
    return get_mongo_client()[settings.mongo_db_name]


def get_feed_collection() -> Collection:
    return get_mongo_db()[settings.feed_collection]


def get_messages_collection() -> Collection:
    return get_mongo_db()[settings.messages_collection]


def get_users_collection() -> Collection:
    return get_mongo_db()[settings.users_collection]


def get_revoked_tokens_collection() -> Collection:
    return get_mongo_db()[settings.revoked_tokens_collection]

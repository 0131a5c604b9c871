from fastapi import Depends, HTTPException, Request
from pymongo.database import Database

from adapter.mongodb.connection import get_mongodb_client
from adapter.mongodb.user_repository import MongoUserRepository
from api.config import Settings
from port.user_repository import UserRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(settings: Settings = Depends(get_settings)) -> Database:
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client(settings.mongo_url)
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[settings.database_name]


def get_user_repo(db: Database = Depends(get_database)) -> UserRepository:
    return MongoUserRepository(db)

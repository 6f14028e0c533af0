"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends
from pymongo import AsyncMongoClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dynamic_api.core.database import get_session_factory
from dynamic_api.core.documents import get_mongo_client


# Type aliases for infrastructure dependencies
LedgerSessions = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
MongoClient = Annotated[AsyncMongoClient, Depends(get_mongo_client)]

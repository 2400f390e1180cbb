"""Opening the MongoDB database the service stores its data in."""

from __future__ import annotations

import os

import pymongo
from pymongo.database import Database
from pymongo.errors import ConfigurationError, PyMongoError

from gavel import logger

MONGODB_URL = "MONGODB_URL"
MONGODB_DB = "MONGODB_DB"


def open_database(url: str, database_name: str) -> Database:
    """Connect to the server at ``url``, check it answers, and return the database.

    Raises the driver's error when the connection or the ping fails.
    """
    if not url:
        err = ConfigurationError("empty MongoDB connection URL")
        logger.error("Error trying to connect to mongodb database", err)
        raise err
    try:
        client = pymongo.MongoClient(url)
    except PyMongoError as err:
        logger.error("Error trying to connect to mongodb database", err)
        raise
    try:
        client.admin.command("ping")
    except PyMongoError as err:
        logger.error("Error trying to ping mongodb database", err)
        client.close()
        raise
    return client[database_name]


def database_from_env() -> Database:
    """Open the database named by ``MONGODB_URL`` and ``MONGODB_DB``."""
    return open_database(
        os.environ.get(MONGODB_URL, ""), os.environ.get(MONGODB_DB, "")
    )
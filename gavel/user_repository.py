"""MongoDB storage for users."""

from __future__ import annotations

from typing import Any

from pymongo.errors import PyMongoError

from gavel import logger
from gavel.entities import User
from gavel.errors import internal_server_error, not_found_error

COLLECTION_NAME = "users"


class UserRepository:
    """Users kept in the ``users`` collection; failures raise InternalError."""

    def __init__(self, database: Any) -> None:
        self.collection = database[COLLECTION_NAME]

    def find_user_by_id(self, user_id: str) -> User:
        """Return the user with this id, or raise a not-found InternalError."""
        try:
            document = self.collection.find_one({"_id": user_id})
        except PyMongoError as err:
            logger.error("Error trying to find user by userId", err)
            raise internal_server_error("Error trying to find user by userId") from err
        if document is None:
            message = f"User not found with this id = {user_id}"
            logger.error(message, LookupError("no documents in result"))
            raise not_found_error(message)
        return User(id=document.get("_id", ""), name=document.get("name", ""))
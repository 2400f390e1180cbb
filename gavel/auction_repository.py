"""MongoDB storage for auctions."""

from __future__ import annotations

import math
from contextlib import closing
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Mapping, TypeVar

from pymongo.errors import PyMongoError

from gavel import logger
from gavel.entities import Auction, AuctionStatus, ProductCondition
from gavel.errors import internal_server_error

COLLECTION_NAME = "auctions"

_E = TypeVar("_E", bound=IntEnum)


def _as_enum(enum_type: type[_E], value: Any) -> _E | int:
    number = int(value)
    try:
        return enum_type(number)
    except ValueError:
        return number


def auction_to_document(auction: Auction) -> dict[str, Any]:
    """Return the stored form of an auction; the timestamp is whole Unix seconds."""
    return {
        "_id": auction.id,
        "product_name": auction.product_name,
        "category": auction.category,
        "description": auction.description,
        "condition": int(auction.condition),
        "status": int(auction.status),
        "timestamp": math.floor(auction.timestamp.timestamp()),
    }


def auction_from_document(document: Mapping[str, Any]) -> Auction:
    """Build an auction from its stored form; missing fields take zero values."""
    return Auction(
        id=document.get("_id", ""),
        product_name=document.get("product_name", ""),
        category=document.get("category", ""),
        description=document.get("description", ""),
        condition=_as_enum(ProductCondition, document.get("condition", 0)),
        status=_as_enum(AuctionStatus, document.get("status", 0)),
        timestamp=datetime.fromtimestamp(int(document.get("timestamp", 0)), timezone.utc),
    )


class AuctionRepository:
    """Auctions kept in the ``auctions`` collection; failures raise InternalError."""

    def __init__(self, database: Any) -> None:
        self.collection = database[COLLECTION_NAME]

    def create_auction(self, auction: Auction) -> None:
        try:
            self.collection.insert_one(auction_to_document(auction))
        except PyMongoError as err:
            logger.error("Error trying to insert auction", err)
            raise internal_server_error("Error trying to insert auction") from err

    def update_auction_status(self, auction_id: str, status: AuctionStatus | int) -> None:
        try:
            self.collection.update_one(
                {"_id": auction_id}, {"$set": {"status": int(status)}}
            )
        except PyMongoError as err:
            logger.error("Error trying to update auction status", err)
            raise internal_server_error(
                "Error trying to update auction status"
            ) from err

    def find_auction_by_id(self, auction_id: str) -> Auction:
        log_message = f"Error trying to find auction by id = {auction_id}"
        try:
            document = self.collection.find_one({"_id": auction_id})
            if document is None:
                raise LookupError("no documents in result")
            return auction_from_document(document)
        except (PyMongoError, LookupError, TypeError, ValueError) as err:
            logger.error(log_message, err)
            raise internal_server_error("Error trying to find auction by id") from err

    def find_auctions(
        self, status: AuctionStatus | int, category: str, product_name: str
    ) -> list[Auction]:
        """Return auctions matching the filters; zero or empty filters match anything."""
        query: dict[str, Any] = {}
        if status != 0:
            query["status"] = int(status)
        if category:
            query["category"] = category
        if product_name:
            query["productName"] = {"$regex": product_name, "$options": "i"}
        return self._find(query, "Error finding auctions", "Error decoding auctions")

    def find_active_auctions_to_check(self) -> list[Auction]:
        """Return every auction that is still active."""
        return self._find(
            {"status": int(AuctionStatus.ACTIVE)},
            "Error finding active auctions",
            "Error decoding active auctions",
        )

    def _find(
        self, query: dict[str, Any], find_message: str, decode_message: str
    ) -> list[Auction]:
        try:
            cursor = self.collection.find(query)
        except PyMongoError as err:
            logger.error(find_message, err)
            raise internal_server_error(find_message) from err
        with closing(cursor):
            try:
                return [auction_from_document(document) for document in cursor]
            except (PyMongoError, TypeError, ValueError) as err:
                logger.error(decode_message, err)
                raise internal_server_error(decode_message) from err
"""MongoDB storage for bids."""

from __future__ import annotations

import math
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from pymongo.errors import PyMongoError

from gavel import logger, settings
from gavel.entities import AuctionRepositoryProtocol, AuctionStatus, Bid
from gavel.errors import InternalError, bad_request_error, internal_server_error

COLLECTION_NAME = "bids"
AUCTION_CLOSED_MESSAGE = "Cannot bid: auction is closed"
_MAX_WORKERS = 32


def bid_to_document(bid: Bid) -> dict[str, Any]:
    """Return the stored form of a bid; the timestamp is whole Unix seconds."""
    return {
        "_id": bid.id,
        "user_id": bid.user_id,
        "auction_id": bid.auction_id,
        "amount": float(bid.amount),
        "timestamp": math.floor(bid.timestamp.timestamp()),
    }


def bid_from_document(document: Mapping[str, Any]) -> Bid:
    """Build a bid from its stored form; missing fields take zero values."""
    return Bid(
        id=document.get("_id", ""),
        user_id=document.get("user_id", ""),
        auction_id=document.get("auction_id", ""),
        amount=float(document.get("amount", 0.0)),
        timestamp=datetime.fromtimestamp(int(document.get("timestamp", 0)), timezone.utc),
    )


def _now_like(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return datetime.now()
    return datetime.now(timezone.utc)


class BidRepository:
    """Bids kept in the ``bids`` collection; failures raise InternalError.

    The status and closing time of each auction a bid is placed on are
    remembered, so later bids on it are checked without a lookup.
    """

    def __init__(
        self,
        database: Any,
        auction_repository: AuctionRepositoryProtocol,
        auction_interval: timedelta | None = None,
    ) -> None:
        self.collection = database[COLLECTION_NAME]
        self.auction_repository = auction_repository
        self.auction_interval = (
            settings.auction_interval() if auction_interval is None else auction_interval
        )
        self._lock = threading.Lock()
        self._auction_status: dict[str, AuctionStatus | int] = {}
        self._auction_end_time: dict[str, datetime] = {}

    def create_bid(self, bids: Iterable[Bid]) -> None:
        """Store every bid that may be placed; raise the first failure, if any."""
        pending = list(bids)
        if not pending:
            return
        workers = min(len(pending), _MAX_WORKERS)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._store_bid, bid) for bid in pending]
        failures = [future.exception() for future in futures]
        first = next((failure for failure in failures if failure is not None), None)
        if first is not None:
            raise first

    def _insert(self, document: dict[str, Any]) -> None:
        try:
            self.collection.insert_one(document)
        except PyMongoError as err:
            logger.error("Error trying to insert bid", err)
            raise internal_server_error("Error trying to insert bid") from err

    def _store_bid(self, bid: Bid) -> None:
        with self._lock:
            status = self._auction_status.get(bid.auction_id)
            end_time = self._auction_end_time.get(bid.auction_id)
        document = bid_to_document(bid)

        if status is not None and end_time is not None:
            if status == AuctionStatus.COMPLETED or _now_like(end_time) > end_time:
                raise bad_request_error(AUCTION_CLOSED_MESSAGE)
            self._insert(document)
            return

        try:
            auction = self.auction_repository.find_auction_by_id(bid.auction_id)
        except InternalError as err:
            logger.error("Error trying to find auction by id", err)
            raise internal_server_error("Error trying to find auction by id") from err
        if auction.status == AuctionStatus.COMPLETED:
            raise bad_request_error(AUCTION_CLOSED_MESSAGE)

        with self._lock:
            self._auction_status[bid.auction_id] = auction.status
            self._auction_end_time[bid.auction_id] = auction.timestamp + self.auction_interval

        self._insert(document)

    def find_bid_by_auction_id(self, auction_id: str) -> list[Bid]:
        """Return the bids stored under this auction id."""
        message = f"Error trying to find bids by auctionId {auction_id}"
        try:
            cursor = self.collection.find({"auctionId": auction_id})
            return [bid_from_document(document) for document in cursor]
        except (PyMongoError, TypeError, ValueError) as err:
            logger.error(message, err)
            raise internal_server_error(message) from err

    def find_winning_bid_by_auction_id(self, auction_id: str) -> Bid:
        """Return the bid with the highest amount on this auction."""
        message = "Error trying to find the auction winner"
        try:
            document = self.collection.find_one(
                {"auction_id": auction_id}, sort=[("amount", -1)]
            )
            if document is None:
                raise LookupError("no documents in result")
            return bid_from_document(document)
        except (PyMongoError, LookupError, TypeError, ValueError) as err:
            logger.error(message, err)
            raise internal_server_error(message) from err
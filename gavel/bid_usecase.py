"""Use cases for placing bids and reading them back."""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from gavel import logger, settings
from gavel.entities import Bid, BidRepositoryProtocol, create_bid
from gavel.errors import InternalError

_STOP = object()
_MIN_WAIT_SECONDS = 0.001


@dataclass(frozen=True)
class BidInput:
    """Fields a client sends to place a bid."""

    user_id: str
    auction_id: str
    amount: float


@dataclass(frozen=True)
class BidOutput:
    """A bid as returned to clients."""

    id: str
    user_id: str
    auction_id: str
    amount: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body for this bid."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "auction_id": self.auction_id,
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat(),
        }


def bid_output_from_entity(bid: Bid) -> BidOutput:
    """Copy a bid entity into its output form."""
    return BidOutput(
        id=bid.id,
        user_id=bid.user_id,
        auction_id=bid.auction_id,
        amount=bid.amount,
        timestamp=bid.timestamp,
    )


class BidUseCase:
    """Places bids and looks them up.

    A background worker collects queued bids into batches and stores a batch
    once it reaches the maximum size or the insert interval runs out. Call
    :meth:`close` (or use the instance as a context manager) to stop it.
    """

    def __init__(
        self,
        bid_repository: BidRepositoryProtocol,
        max_batch_size: int | None = None,
        batch_insert_interval: timedelta | None = None,
    ) -> None:
        self.bid_repository = bid_repository
        self._max_batch_size = (
            settings.max_batch_size() if max_batch_size is None else max_batch_size
        )
        interval = (
            settings.batch_insert_interval()
            if batch_insert_interval is None
            else batch_insert_interval
        )
        self._interval = max(interval.total_seconds(), _MIN_WAIT_SECONDS)
        self._queue: queue.Queue[Any] = queue.Queue(
            maxsize=max(self._max_batch_size, 0)
        )
        self._closed = False
        self._lock = threading.Lock()
        self._worker = threading.Thread(
            target=self._run, name="bid-batch-writer", daemon=True
        )
        self._worker.start()

    def __enter__(self) -> BidUseCase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _flush(self, batch: list[Bid]) -> None:
        if not batch:
            return
        try:
            self.bid_repository.create_bid(list(batch))
        except InternalError as err:
            logger.error("error trying to process bid batch list", err)

    def _run(self) -> None:
        batch: list[Bid] = []
        deadline = time.monotonic() + self._interval
        while True:
            timeout = max(deadline - time.monotonic(), 0.0)
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                self._flush(batch)
                batch = []
                deadline = time.monotonic() + self._interval
                continue
            if item is _STOP:
                self._flush(batch)
                return
            batch.append(item)
            if len(batch) >= self._max_batch_size:
                self._flush(batch)
                batch = []
                deadline = time.monotonic() + self._interval

    def close(self) -> None:
        """Stop the batch worker, storing whatever it still holds."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_STOP)
        self._worker.join()

    def create_bid(self, bid_input: BidInput) -> None:
        """Validate and store one bid; raises InternalError on failure."""
        bid = create_bid(bid_input.user_id, bid_input.auction_id, bid_input.amount)
        self.bid_repository.create_bid([bid])

    def find_bid_by_auction_id(self, auction_id: str) -> list[BidOutput]:
        """Return every bid placed on an auction."""
        return [
            bid_output_from_entity(bid)
            for bid in self.bid_repository.find_bid_by_auction_id(auction_id)
        ]

    def find_winning_bid_by_auction_id(self, auction_id: str) -> BidOutput:
        """Return the highest bid on an auction."""
        return bid_output_from_entity(
            self.bid_repository.find_winning_bid_by_auction_id(auction_id)
        )
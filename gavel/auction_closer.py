"""Background worker that completes auctions whose time has run out."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from gavel import logger, settings
from gavel.entities import AuctionRepositoryProtocol, AuctionStatus
from gavel.errors import InternalError


class AuctionCloser:
    """Periodically marks expired active auctions as completed.

    An auction expires once its timestamp plus the auction interval has
    passed. Checks run every check interval between :meth:`start` and
    :meth:`stop`.
    """

    def __init__(
        self,
        auction_repository: AuctionRepositoryProtocol,
        check_interval: timedelta | None = None,
        auction_interval: timedelta | None = None,
    ) -> None:
        self.auction_repository = auction_repository
        self.check_interval = (
            settings.auction_check_interval() if check_interval is None else check_interval
        )
        self.auction_interval = (
            settings.auction_interval() if auction_interval is None else auction_interval
        )
        if self.check_interval <= timedelta(0):
            raise ValueError("check interval must be positive")
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> AuctionCloser:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        """Start the background checks."""
        if self._thread is not None:
            raise RuntimeError("auction closer already started")
        self._thread = threading.Thread(
            target=self._run, name="auction-closer", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the background checks and wait for the worker to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        logger.info(
            "Auction closer routine started",
            check_interval=str(self.check_interval),
            auction_interval=str(self.auction_interval),
        )
        wait_seconds = self.check_interval.total_seconds()
        while not self._stop_event.wait(wait_seconds):
            self.check_and_close_expired_auctions()
        logger.info("Auction closer routine stopped")

    def check_and_close_expired_auctions(self) -> int:
        """Complete every expired active auction; return how many were closed."""
        try:
            active_auctions = self.auction_repository.find_active_auctions_to_check()
        except InternalError as err:
            logger.error("Error finding active auctions to check", err)
            return 0

        now_aware = datetime.now(timezone.utc)
        now_naive = datetime.now()
        closed_count = 0

        for auction in active_auctions:
            expiration_time = auction.timestamp + self.auction_interval
            now = now_naive if auction.timestamp.tzinfo is None else now_aware
            if now <= expiration_time:
                continue
            try:
                self.auction_repository.update_auction_status(
                    auction.id, AuctionStatus.COMPLETED
                )
            except InternalError as err:
                logger.error("Error closing expired auction", err, auction_id=auction.id)
                continue
            logger.info(
                "Auction closed automatically",
                auction_id=auction.id,
                product_name=auction.product_name,
                created_at=auction.timestamp,
                expired_at=expiration_time,
                closed_at=now,
            )
            closed_count += 1

        if closed_count > 0:
            logger.info(
                "Auction closer processed expired auctions",
                closed_count=closed_count,
                total_checked=len(active_auctions),
            )
        return closed_count
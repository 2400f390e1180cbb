"""Use cases for creating auctions and reading them back."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from gavel import logger
from gavel.bid_usecase import BidOutput, bid_output_from_entity
from gavel.entities import (
    Auction,
    AuctionRepositoryProtocol,
    BidRepositoryProtocol,
    create_auction,
)
from gavel.errors import InternalError


@dataclass(frozen=True)
class AuctionInput:
    """Fields a client sends to open an auction."""

    product_name: str
    category: str
    description: str
    condition: int = 0


@dataclass(frozen=True)
class AuctionOutput:
    """An auction as returned to clients."""

    id: str
    product_name: str
    category: str
    description: str
    condition: int
    status: int
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body for this auction."""
        return {
            "id": self.id,
            "product_name": self.product_name,
            "category": self.category,
            "description": self.description,
            "condition": self.condition,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class WinningInfoOutput:
    """An auction together with its highest bid, if any."""

    auction: AuctionOutput
    bid: BidOutput | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body; the bid key is left out when there is none."""
        body: dict[str, Any] = {"auction": self.auction.to_dict()}
        if self.bid is not None:
            body["bid"] = self.bid.to_dict()
        return body


def auction_output_from_entity(auction: Auction) -> AuctionOutput:
    """Copy an auction entity into its output form."""
    return AuctionOutput(
        id=auction.id,
        product_name=auction.product_name,
        category=auction.category,
        description=auction.description,
        condition=int(auction.condition),
        status=int(auction.status),
        timestamp=auction.timestamp,
    )


class AuctionUseCase:
    """Opens auctions and looks them up."""

    def __init__(
        self,
        auction_repository: AuctionRepositoryProtocol,
        bid_repository: BidRepositoryProtocol,
    ) -> None:
        self.auction_repository = auction_repository
        self.bid_repository = bid_repository

    def create_auction(self, auction_input: AuctionInput) -> None:
        """Validate and store a new auction; raises InternalError on failure."""
        auction = create_auction(
            auction_input.product_name,
            auction_input.category,
            auction_input.description,
            auction_input.condition,
        )
        self.auction_repository.create_auction(auction)

    def find_auction_by_id(self, auction_id: str) -> AuctionOutput:
        return auction_output_from_entity(
            self.auction_repository.find_auction_by_id(auction_id)
        )

    def find_auctions(
        self, status: int, category: str, product_name: str
    ) -> list[AuctionOutput]:
        """Return auctions matching the filters; empty filters match anything."""
        return [
            auction_output_from_entity(auction)
            for auction in self.auction_repository.find_auctions(
                status, category, product_name
            )
        ]

    def find_winning_bid_by_auction_id(self, auction_id: str) -> WinningInfoOutput:
        """Return the auction and its winning bid; a failed bid lookup gives no bid."""
        auction = self.auction_repository.find_auction_by_id(auction_id)
        auction_output = auction_output_from_entity(auction)
        try:
            winning = self.bid_repository.find_winning_bid_by_auction_id(auction.id)
        except InternalError as err:
            logger.error("", err)
            return WinningInfoOutput(auction=auction_output, bid=None)
        return WinningInfoOutput(
            auction=auction_output, bid=bid_output_from_entity(winning)
        )
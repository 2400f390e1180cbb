"""Domain entities for auctions, bids and users, and their repository contracts."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Protocol

from gavel.errors import bad_request_error

_HEX = frozenset(b"0123456789abcdefABCDEF")
_DASH_POSITIONS = (8, 13, 18, 23)


class ProductCondition(IntEnum):
    NEW = 1
    USED = 2
    REFURBISHED = 3


class AuctionStatus(IntEnum):
    ACTIVE = 0
    COMPLETED = 1


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_uuid(value: str) -> bool:
    """Accept the usual textual UUID forms: plain, braced, urn-prefixed or bare hex."""
    raw = value.encode("utf-8")
    if len(raw) == 32:
        return all(byte in _HEX for byte in raw)
    if len(raw) == 36 + 9:
        if raw[:9].lower() != b"urn:uuid:":
            return False
        raw = raw[9:]
    elif len(raw) == 36 + 2:
        if raw[:1] != b"{" or raw[-1:] != b"}":
            return False
        raw = raw[1:-1]
    elif len(raw) != 36:
        return False
    return all(
        byte == ord("-") if position in _DASH_POSITIONS else byte in _HEX
        for position, byte in enumerate(raw)
    )


@dataclass
class Auction:
    id: str
    product_name: str
    category: str
    description: str
    condition: ProductCondition | int
    status: AuctionStatus | int = AuctionStatus.ACTIVE
    timestamp: datetime = field(default_factory=_now)

    def validate(self) -> None:
        """Raise a bad-request InternalError when the auction is not acceptable."""
        short_description = len(self.description.encode("utf-8")) <= 10
        unknown_condition = self.condition not in (
            ProductCondition.NEW,
            ProductCondition.REFURBISHED,
            ProductCondition.USED,
        )
        if (
            len(self.product_name.encode("utf-8")) <= 1
            or len(self.category.encode("utf-8")) <= 2
            or (short_description and unknown_condition)
        ):
            raise bad_request_error("invalid auction object")


def create_auction(
    product_name: str,
    category: str,
    description: str,
    condition: ProductCondition | int,
) -> Auction:
    """Build a new active auction with a fresh id, validating it."""
    auction = Auction(
        id=str(uuid.uuid4()),
        product_name=product_name,
        category=category,
        description=description,
        condition=condition,
        status=AuctionStatus.ACTIVE,
        timestamp=_now(),
    )
    auction.validate()
    return auction


@dataclass
class Bid:
    id: str
    user_id: str
    auction_id: str
    amount: float
    timestamp: datetime = field(default_factory=_now)

    def validate(self) -> None:
        """Raise a bad-request InternalError when the bid is not acceptable."""
        if not is_valid_uuid(self.user_id):
            raise bad_request_error("UserId is not a valid id")
        if not is_valid_uuid(self.auction_id):
            raise bad_request_error("AuctionId is not a valid id")
        if self.amount <= 0:
            raise bad_request_error("Amount is not a valid value")


def create_bid(user_id: str, auction_id: str, amount: float) -> Bid:
    """Build a new bid with a fresh id, validating it."""
    bid = Bid(
        id=str(uuid.uuid4()),
        user_id=user_id,
        auction_id=auction_id,
        amount=amount,
        timestamp=_now(),
    )
    bid.validate()
    return bid


@dataclass
class User:
    id: str
    name: str


class AuctionRepositoryProtocol(Protocol):
    """Storage for auctions; failures raise InternalError."""

    def create_auction(self, auction: Auction) -> None: ...

    def find_auctions(
        self, status: AuctionStatus | int, category: str, product_name: str
    ) -> list[Auction]: ...

    def find_auction_by_id(self, auction_id: str) -> Auction: ...

    def update_auction_status(
        self, auction_id: str, status: AuctionStatus | int
    ) -> None: ...

    def find_active_auctions_to_check(self) -> list[Auction]: ...


class BidRepositoryProtocol(Protocol):
    """Storage for bids; failures raise InternalError."""

    def create_bid(self, bids: list[Bid]) -> None: ...

    def find_bid_by_auction_id(self, auction_id: str) -> list[Bid]: ...

    def find_winning_bid_by_auction_id(self, auction_id: str) -> Bid: ...


class UserRepositoryProtocol(Protocol):
    """Storage for users; failures raise InternalError."""

    def find_user_by_id(self, user_id: str) -> User: ...
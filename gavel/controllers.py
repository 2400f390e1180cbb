"""Request handlers for auctions, bids and users.

Each handler returns a ``(status, body)`` pair. ``body`` is the JSON value to
send back. It is ``None`` when nothing is sent: a created resource, or an
empty list, which is sent as JSON ``null``.
"""

from __future__ import annotations

import re
from http import HTTPStatus
from typing import Any

from gavel.auction_usecase import AuctionUseCase
from gavel.bid_usecase import BidUseCase
from gavel.entities import is_valid_uuid
from gavel.errors import Cause, InternalError, RestErr, convert_error, rest_bad_request
from gavel.user_usecase import UserUseCase
from gavel.validation import (
    FieldValidationError,
    InvalidTypeError,
    bind_auction_input,
    bind_bid_input,
    validate_err,
)

_BINDING_ERRORS = (InvalidTypeError, FieldValidationError, ValueError)
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _error_reply(err: RestErr) -> tuple[int, Any]:
    return err.code, err.to_dict()


def _invalid_id_reply(field: str) -> tuple[int, Any]:
    return _error_reply(
        rest_bad_request("Invalid fields", Cause(field=field, message="Invalid UUID value"))
    )


def _parse_status(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _list_body(items: list[Any]) -> list[dict[str, Any]] | None:
    return [item.to_dict() for item in items] or None


class AuctionController:
    """Handlers for the auction endpoints."""

    def __init__(self, auction_use_case: AuctionUseCase) -> None:
        self.auction_use_case = auction_use_case

    def create_auction(self, payload: Any) -> tuple[int, Any]:
        """Open an auction from a JSON body."""
        try:
            auction_input = bind_auction_input(payload)
        except _BINDING_ERRORS as err:
            return _error_reply(validate_err(err))
        try:
            self.auction_use_case.create_auction(auction_input)
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.CREATED), None

    def find_auction_by_id(self, auction_id: str) -> tuple[int, Any]:
        if not is_valid_uuid(auction_id):
            return _invalid_id_reply("auctionId")
        try:
            auction = self.auction_use_case.find_auction_by_id(auction_id)
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.OK), auction.to_dict()

    def find_auctions(
        self, status: str, category: str, product_name: str
    ) -> tuple[int, Any]:
        """List auctions; ``status`` is the raw query text and must be an integer."""
        status_number = _parse_status(status)
        if status_number is None:
            return _error_reply(
                rest_bad_request("Error trying to validate auction status param")
            )
        try:
            auctions = self.auction_use_case.find_auctions(
                status_number, category, product_name
            )
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.OK), _list_body(auctions)

    def find_winning_bid_by_auction_id(self, auction_id: str) -> tuple[int, Any]:
        if not is_valid_uuid(auction_id):
            return _invalid_id_reply("auctionId")
        try:
            winning = self.auction_use_case.find_winning_bid_by_auction_id(auction_id)
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.OK), winning.to_dict()


class BidController:
    """Handlers for the bid endpoints."""

    def __init__(self, bid_use_case: BidUseCase) -> None:
        self.bid_use_case = bid_use_case

    def create_bid(self, payload: Any) -> tuple[int, Any]:
        """Place a bid from a JSON body."""
        try:
            bid_input = bind_bid_input(payload)
        except _BINDING_ERRORS as err:
            return _error_reply(validate_err(err))
        try:
            self.bid_use_case.create_bid(bid_input)
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.CREATED), None

    def find_bid_by_auction_id(self, auction_id: str) -> tuple[int, Any]:
        if not is_valid_uuid(auction_id):
            return _invalid_id_reply("auctionId")
        try:
            bids = self.bid_use_case.find_bid_by_auction_id(auction_id)
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.OK), _list_body(bids)


class UserController:
    """Handlers for the user endpoints."""

    def __init__(self, user_use_case: UserUseCase) -> None:
        self.user_use_case = user_use_case

    def find_user_by_id(self, user_id: str) -> tuple[int, Any]:
        if not is_valid_uuid(user_id):
            return _invalid_id_reply("userId")
        try:
            user = self.user_use_case.find_user_by_id(user_id)
        except InternalError as err:
            return _error_reply(convert_error(err))
        return int(HTTPStatus.OK), user.to_dict()
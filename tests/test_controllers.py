import json
import uuid
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

import pytest

from gavel.auction_usecase import AuctionInput, AuctionOutput, WinningInfoOutput
from gavel.bid_usecase import BidUseCase
from gavel.controllers import AuctionController, BidController, UserController
from gavel.entities import Bid, User
from gavel.errors import bad_request_error, not_found_error
from gavel.user_usecase import UserUseCase

MOMENT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def make_output(auction_id=None):
    return AuctionOutput(
        id=auction_id or str(uuid.uuid4()),
        product_name="Phone",
        category="Electronics",
        description="A phone in working order",
        condition=1,
        status=0,
        timestamp=MOMENT,
    )


class FakeAuctionUseCase:
    def __init__(self, auctions=None, error=None):
        self.auctions = {a.id: a for a in (auctions or [])}
        self.error = error
        self.created = []
        self.queries = []

    def create_auction(self, auction_input):
        if self.error is not None:
            raise self.error
        self.created.append(auction_input)

    def find_auction_by_id(self, auction_id):
        if auction_id not in self.auctions:
            raise not_found_error("Auction not found")
        return self.auctions[auction_id]

    def find_auctions(self, status, category, product_name):
        self.queries.append((status, category, product_name))
        return list(self.auctions.values())

    def find_winning_bid_by_auction_id(self, auction_id):
        return WinningInfoOutput(auction=self.find_auction_by_id(auction_id))


class FakeBidRepository:
    def __init__(self, bids=None):
        self.stored = []
        self.bids = bids or []

    def create_bid(self, bids):
        self.stored.extend(bids)

    def find_bid_by_auction_id(self, auction_id):
        return [b for b in self.bids if b.auction_id == auction_id]

    def find_winning_bid_by_auction_id(self, auction_id):
        raise not_found_error("no bids")


class FakeUserRepository:
    def __init__(self, users):
        self.users = {u.id: u for u in users}

    def find_user_by_id(self, user_id):
        if user_id not in self.users:
            raise not_found_error(f"User not found with this id = {user_id}")
        return self.users[user_id]


@pytest.fixture
def bid_use_case_factory():
    created = []

    def build(repository):
        use_case = BidUseCase(
            repository, max_batch_size=5, batch_insert_interval=timedelta(minutes=3)
        )
        created.append(use_case)
        return use_case

    yield build
    for use_case in created:
        use_case.close()


VALID_AUCTION = {
    "product_name": "Phone",
    "category": "Electronics",
    "description": "A phone in working order",
    "condition": 1,
}


def test_create_auction_stores_input():
    use_case = FakeAuctionUseCase()
    status, body = AuctionController(use_case).create_auction(json.dumps(VALID_AUCTION))
    assert (status, body) == (HTTPStatus.CREATED, None)
    assert use_case.created == [AuctionInput(**VALID_AUCTION)]


def test_create_auction_rejects_malformed_json():
    status, body = AuctionController(FakeAuctionUseCase()).create_auction(b"{")
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "Error trying to convert fields"


def test_create_auction_wrong_type_is_not_found():
    payload = json.dumps({**VALID_AUCTION, "product_name": 5})
    status, body = AuctionController(FakeAuctionUseCase()).create_auction(payload)
    assert status == HTTPStatus.NOT_FOUND
    assert body["message"] == "Invalid type error"


def test_create_auction_missing_fields_lists_causes():
    use_case = FakeAuctionUseCase()
    status, body = AuctionController(use_case).create_auction("{}")
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "Invalid field values"
    assert [cause["field"] for cause in body["causes"]] == [
        "ProductName",
        "Category",
        "Description",
    ]
    assert use_case.created == []


def test_create_auction_converts_use_case_error():
    use_case = FakeAuctionUseCase(error=bad_request_error("invalid auction object"))
    status, body = AuctionController(use_case).create_auction(json.dumps(VALID_AUCTION))
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "invalid auction object"
    assert body["err"] == "bad_request"


def test_find_auction_by_id_rejects_bad_uuid():
    status, body = AuctionController(FakeAuctionUseCase()).find_auction_by_id("nope")
    assert status == HTTPStatus.BAD_REQUEST
    assert body == {
        "message": "Invalid fields",
        "err": "bad_request",
        "code": HTTPStatus.BAD_REQUEST,
        "causes": [{"field": "auctionId", "message": "Invalid UUID value"}],
    }


def test_find_auction_by_id_returns_auction():
    output = make_output()
    controller = AuctionController(FakeAuctionUseCase([output]))
    assert controller.find_auction_by_id(output.id) == (HTTPStatus.OK, output.to_dict())


def test_find_auction_by_id_not_found():
    status, body = AuctionController(FakeAuctionUseCase()).find_auction_by_id(
        str(uuid.uuid4())
    )
    assert status == HTTPStatus.NOT_FOUND
    assert body["message"] == "Auction not found"


@pytest.mark.parametrize("status_text", ["", "abc", "1.5", "99999999999999999999"])
def test_find_auctions_rejects_bad_status(status_text):
    use_case = FakeAuctionUseCase()
    status, body = AuctionController(use_case).find_auctions(status_text, "", "")
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "Error trying to validate auction status param"
    assert use_case.queries == []


def test_find_auctions_passes_filters():
    output = make_output()
    use_case = FakeAuctionUseCase([output])
    status, body = AuctionController(use_case).find_auctions("1", "cars", "bike")
    assert status == HTTPStatus.OK
    assert body == [output.to_dict()]
    assert use_case.queries == [(1, "cars", "bike")]


def test_find_auctions_empty_is_null():
    assert AuctionController(FakeAuctionUseCase()).find_auctions("0", "", "") == (
        HTTPStatus.OK,
        None,
    )


def test_find_winning_bid_without_bid():
    output = make_output()
    controller = AuctionController(FakeAuctionUseCase([output]))
    status, body = controller.find_winning_bid_by_auction_id(output.id)
    assert status == HTTPStatus.OK
    assert body == {"auction": output.to_dict()}


def test_find_winning_bid_rejects_bad_uuid():
    status, body = AuctionController(
        FakeAuctionUseCase()
    ).find_winning_bid_by_auction_id("1234")
    assert status == HTTPStatus.BAD_REQUEST
    assert body["causes"] == [{"field": "auctionId", "message": "Invalid UUID value"}]


def test_create_bid_stores_bid(bid_use_case_factory):
    repository = FakeBidRepository()
    controller = BidController(bid_use_case_factory(repository))
    user_id, auction_id = str(uuid.uuid4()), str(uuid.uuid4())
    payload = json.dumps({"user_id": user_id, "auction_id": auction_id, "amount": 12.5})
    assert controller.create_bid(payload) == (HTTPStatus.CREATED, None)
    assert [(b.user_id, b.auction_id, b.amount) for b in repository.stored] == [
        (user_id, auction_id, 12.5)
    ]


def test_create_bid_rejects_non_positive_amount(bid_use_case_factory):
    repository = FakeBidRepository()
    controller = BidController(bid_use_case_factory(repository))
    payload = json.dumps(
        {"user_id": str(uuid.uuid4()), "auction_id": str(uuid.uuid4()), "amount": 0}
    )
    status, body = controller.create_bid(payload)
    assert status == HTTPStatus.BAD_REQUEST
    assert body["message"] == "Amount is not a valid value"
    assert repository.stored == []


def test_create_bid_wrong_type(bid_use_case_factory):
    controller = BidController(bid_use_case_factory(FakeBidRepository()))
    status, body = controller.create_bid(json.dumps({"amount": "ten"}))
    assert status == HTTPStatus.NOT_FOUND
    assert body["message"] == "Invalid type error"


def test_find_bids_rejects_bad_uuid(bid_use_case_factory):
    controller = BidController(bid_use_case_factory(FakeBidRepository()))
    status, body = controller.find_bid_by_auction_id("x")
    assert status == HTTPStatus.BAD_REQUEST
    assert body["causes"] == [{"field": "auctionId", "message": "Invalid UUID value"}]


def test_find_bids_lists_bids(bid_use_case_factory):
    auction_id = str(uuid.uuid4())
    bid = Bid(
        id=str(uuid.uuid4()),
        user_id=str(uuid.uuid4()),
        auction_id=auction_id,
        amount=7.0,
        timestamp=MOMENT,
    )
    controller = BidController(bid_use_case_factory(FakeBidRepository([bid])))
    status, body = controller.find_bid_by_auction_id(auction_id)
    assert status == HTTPStatus.OK
    assert [item["id"] for item in body] == [bid.id]
    assert body[0]["amount"] == 7.0


def test_find_bids_empty_is_null(bid_use_case_factory):
    controller = BidController(bid_use_case_factory(FakeBidRepository()))
    assert controller.find_bid_by_auction_id(str(uuid.uuid4())) == (HTTPStatus.OK, None)


def test_find_user_rejects_bad_uuid():
    controller = UserController(UserUseCase(FakeUserRepository([])))
    status, body = controller.find_user_by_id("bad")
    assert status == HTTPStatus.BAD_REQUEST
    assert body["causes"] == [{"field": "userId", "message": "Invalid UUID value"}]


def test_find_user_returns_user():
    user = User(id=str(uuid.uuid4()), name="Ana")
    controller = UserController(UserUseCase(FakeUserRepository([user])))
    assert controller.find_user_by_id(user.id) == (
        HTTPStatus.OK,
        {"id": user.id, "name": "Ana"},
    )


def test_find_user_not_found():
    user_id = str(uuid.uuid4())
    controller = UserController(UserUseCase(FakeUserRepository([])))
    status, body = controller.find_user_by_id(user_id)
    assert status == HTTPStatus.NOT_FOUND
    assert body["message"] == f"User not found with this id = {user_id}"
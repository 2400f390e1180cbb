import uuid
from datetime import datetime, timedelta, timezone

import pytest

from gavel.entities import (
    Auction,
    AuctionStatus,
    Bid,
    ProductCondition,
    User,
    create_auction,
    create_bid,
    is_valid_uuid,
)
from gavel.errors import InternalError

SAMPLE_UUID = "123e4567-e89b-12d3-a456-426614174000"


@pytest.mark.parametrize(
    ("condition", "value"),
    [
        (ProductCondition.NEW, 1),
        (ProductCondition.USED, 2),
        (ProductCondition.REFURBISHED, 3),
    ],
)
def test_created_auction_carries_source_values(condition, value):
    auction = create_auction("Phone", "Electronics", "A phone in great shape", condition)
    assert int(auction.condition) == value
    assert int(auction.status) == 0
    assert auction.status == AuctionStatus.ACTIVE
    assert int(AuctionStatus.COMPLETED) == 1


def test_create_auction_valid():
    before = datetime.now(timezone.utc)
    auction = create_auction(
        "Phone", "Electronics", "A phone in great shape", ProductCondition.NEW
    )
    assert auction.status == AuctionStatus.ACTIVE
    assert auction.product_name == "Phone"
    assert auction.category == "Electronics"
    assert auction.condition == ProductCondition.NEW
    assert is_valid_uuid(auction.id)
    assert before - timedelta(seconds=1) <= auction.timestamp <= datetime.now(timezone.utc)


def test_create_auction_ids_are_unique():
    first = create_auction("Phone", "Electronics", "A phone in great shape", 1)
    second = create_auction("Phone", "Electronics", "A phone in great shape", 1)
    assert first.id != second.id
    assert first.product_name == second.product_name


@pytest.mark.parametrize(
    ("name", "category", "description", "condition"),
    [
        ("P", "Electronics", "A phone in great shape", ProductCondition.NEW),
        ("Phone", "El", "A phone in great shape", ProductCondition.NEW),
        ("Phone", "Electronics", "short", 0),
    ],
)
def test_create_auction_invalid(name, category, description, condition):
    with pytest.raises(InternalError) as info:
        create_auction(name, category, description, condition)
    assert info.value.err == "bad_request"
    assert str(info.value) == "invalid auction object"


def test_short_description_passes_with_known_condition():
    auction = create_auction("Phone", "Electronics", "short", ProductCondition.USED)
    assert auction.description == "short"


def test_long_description_passes_with_unknown_condition():
    auction = create_auction("Phone", "Electronics", "A phone in great shape", 0)
    assert auction.condition == 0


def test_auction_validate_direct():
    auction = Auction(
        id=SAMPLE_UUID,
        product_name="X",
        category="Electronics",
        description="A description long enough",
        condition=ProductCondition.NEW,
    )
    with pytest.raises(InternalError):
        auction.validate()


def test_create_bid_valid():
    user_id, auction_id = str(uuid.uuid4()), str(uuid.uuid4())
    bid = create_bid(user_id, auction_id, 10.5)
    assert bid.user_id == user_id
    assert bid.auction_id == auction_id
    assert bid.amount == 10.5
    assert is_valid_uuid(bid.id)


@pytest.mark.parametrize(
    ("user_id", "auction_id", "amount", "message"),
    [
        ("not-a-uuid", SAMPLE_UUID, 10.0, "UserId is not a valid id"),
        (SAMPLE_UUID, "not-a-uuid", 10.0, "AuctionId is not a valid id"),
        (SAMPLE_UUID, SAMPLE_UUID, 0.0, "Amount is not a valid value"),
        (SAMPLE_UUID, SAMPLE_UUID, -1.0, "Amount is not a valid value"),
    ],
)
def test_create_bid_invalid(user_id, auction_id, amount, message):
    with pytest.raises(InternalError) as info:
        create_bid(user_id, auction_id, amount)
    assert info.value.err == "bad_request"
    assert str(info.value) == message


def test_bid_validate_checks_user_first():
    bid = Bid(id=SAMPLE_UUID, user_id="bad", auction_id="bad", amount=-5)
    with pytest.raises(InternalError) as info:
        bid.validate()
    assert str(info.value) == "UserId is not a valid id"


@pytest.mark.parametrize(
    "value",
    [
        SAMPLE_UUID,
        SAMPLE_UUID.upper(),
        "{" + SAMPLE_UUID + "}",
        "urn:uuid:" + SAMPLE_UUID,
        "URN:UUID:" + SAMPLE_UUID,
        SAMPLE_UUID.replace("-", ""),
    ],
)
def test_is_valid_uuid_accepts(value):
    assert is_valid_uuid(value) is True


@pytest.mark.parametrize(
    "value",
    [
        "",
        "not-a-uuid",
        SAMPLE_UUID[:-1] + "g",
        SAMPLE_UUID.replace("-", "_"),
        "[" + SAMPLE_UUID + "]",
        "urx:uuid:" + SAMPLE_UUID,
        SAMPLE_UUID + "0",
    ],
)
def test_is_valid_uuid_rejects(value):
    assert is_valid_uuid(value) is False


def test_random_uuids_are_valid():
    for _ in range(20):
        assert is_valid_uuid(str(uuid.uuid4()))


def test_user_holds_fields():
    user = User(id=SAMPLE_UUID, name="Alice")
    assert (user.id, user.name) == (SAMPLE_UUID, "Alice")
"""Decoding and validating JSON request bodies."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from gavel.auction_usecase import AuctionInput
from gavel.bid_usecase import BidInput
from gavel.errors import Cause, RestErr, rest_bad_request, rest_not_found

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_CONDITION_CHOICES = (0, 1, 2)


class InvalidTypeError(Exception):
    """A JSON value does not have the type its field needs."""

    def __init__(self, field: str, value_kind: str, expected: str) -> None:
        self.field = field
        self.value_kind = value_kind
        self.expected = expected
        target = f"field {field}" if field else "the request body"
        super().__init__(f"cannot decode {value_kind} into {target} of type {expected}")


@dataclass(frozen=True)
class FieldViolation:
    """One failed rule on one field."""

    field: str
    tag: str
    param: str
    message: str


class FieldValidationError(Exception):
    """One or more fields broke their validation rules."""

    def __init__(self, violations: Iterable[FieldViolation]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(violation.message for violation in self.violations))


def validate_err(exc: BaseException) -> RestErr:
    """Map a binding failure onto the HTTP error sent back to the client."""
    if isinstance(exc, InvalidTypeError):
        return rest_not_found("Invalid type error")
    if isinstance(exc, FieldValidationError):
        causes = [Cause(field=v.field, message=v.message) for v in exc.violations]
        return rest_bad_request("Invalid field values", *causes)
    return rest_bad_request("Error trying to convert fields")


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _as_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise InvalidTypeError(field, _json_kind(value), "string")
    return value


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTypeError(field, _json_kind(value), "float64")
    return float(value)


def _as_int64(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTypeError(field, _json_kind(value), "int64")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidTypeError(field, "number", "int64")
    return value


_Decoder = Callable[[Any, str], Any]


def _load(payload: Any) -> Any:
    if isinstance(payload, (str, bytes, bytearray)):
        return json.loads(payload)
    return payload


def _decode_object(
    payload: Any,
    spec: Mapping[str, tuple[str, _Decoder]],
    defaults: Mapping[str, Any],
) -> dict[str, Any]:
    """Decode a JSON object onto the named fields; keys match case-insensitively."""
    data = _load(payload)
    values = dict(defaults)
    if data is None:
        return values
    if not isinstance(data, dict):
        raise InvalidTypeError("", _json_kind(data), "object")

    folded = {name.casefold(): entry for name, entry in spec.items()}
    first_error: InvalidTypeError | None = None
    for key, value in data.items():
        entry = spec.get(key) or folded.get(str(key).casefold())
        if entry is None or value is None:
            continue
        attribute, decode = entry
        try:
            values[attribute] = decode(value, str(key))
        except InvalidTypeError as err:
            if first_error is None:
                first_error = err
    if first_error is not None:
        raise first_error
    return values


def _characters(count: int) -> str:
    return f"{count} character" if count == 1 else f"{count} characters"


def _check_string(
    field: str, value: str, minimum: int, maximum: int | None = None
) -> FieldViolation | None:
    if value == "":
        return FieldViolation(field, "required", "", f"{field} is a required field")
    if len(value) < minimum:
        return FieldViolation(
            field,
            "min",
            str(minimum),
            f"{field} must be at least {_characters(minimum)} in length",
        )
    if maximum is not None and len(value) > maximum:
        return FieldViolation(
            field,
            "max",
            str(maximum),
            f"{field} must be a maximum of {_characters(maximum)} in length",
        )
    return None


def bind_auction_input(payload: Any) -> AuctionInput:
    """Decode and validate the body of a create-auction request.

    Raises InvalidTypeError, FieldValidationError, or ValueError for text
    that is not JSON.
    """
    values = _decode_object(
        payload,
        {
            "product_name": ("product_name", _as_string),
            "category": ("category", _as_string),
            "description": ("description", _as_string),
            "condition": ("condition", _as_int64),
        },
        {"product_name": "", "category": "", "description": "", "condition": 0},
    )

    checks = [
        _check_string("ProductName", values["product_name"], 1),
        _check_string("Category", values["category"], 2),
        _check_string("Description", values["description"], 10, 200),
    ]
    if values["condition"] not in _CONDITION_CHOICES:
        choices = " ".join(str(choice) for choice in _CONDITION_CHOICES)
        checks.append(
            FieldViolation(
                "Condition", "oneof", choices, f"Condition must be one of [{choices}]"
            )
        )
    violations = [check for check in checks if check is not None]
    if violations:
        raise FieldValidationError(violations)
    return AuctionInput(**values)


def bind_bid_input(payload: Any) -> BidInput:
    """Decode the body of a place-bid request.

    Raises InvalidTypeError, or ValueError for text that is not JSON.
    """
    values = _decode_object(
        payload,
        {
            "user_id": ("user_id", _as_string),
            "auction_id": ("auction_id", _as_string),
            "amount": ("amount", _as_float),
        },
        {"user_id": "", "auction_id": "", "amount": 0.0},
    )
    return BidInput(**values)
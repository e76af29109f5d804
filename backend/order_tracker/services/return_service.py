# Overview: Return/claim workflow; the state machine over an order's return sub-fields.

"""
Return Processing

A returned order is classified by how the goods came back:

    Unclassified --(Courier)--> Courier      loss forced to 0, claim "None"
    Unclassified --(Customer)-> Customer     claim defaults to "Pending"
    Courier  <---------------->  Customer    entry actions re-run on each switch

Inside Customer the claim moves freely between Pending, Approved, Rejected
and Not Required; nothing moves it automatically. An Approved claim means the
platform reimbursed the loss, so reporting stops deducting it.

All functions work on ReturnDetails, the editing context opened when an
order is switched to the returned status. Nothing here touches the database;
orders_service persists the result through the gateway.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from typing import Any
from collections.abc import MutableMapping

from ..records import field, number_field, text_field


RETURNED_STATUS = "Returned"

RETURN_TYPE_COURIER = "Courier"
RETURN_TYPE_CUSTOMER = "Customer"
RETURN_TYPES = (RETURN_TYPE_COURIER, RETURN_TYPE_CUSTOMER)

CLAIM_NONE = "None"
CLAIM_PENDING = "Pending"
CLAIM_APPROVED = "Approved"
CLAIM_REJECTED = "Rejected"
CLAIM_NOT_REQUIRED = "Not Required"
CLAIM_STATUSES = (CLAIM_NONE, CLAIM_PENDING, CLAIM_APPROVED, CLAIM_REJECTED, CLAIM_NOT_REQUIRED)

RECEIVED_PENDING = "Pending"
RECEIVED_STATUSES = (RECEIVED_PENDING, "Received", "Not Received")


class ReturnError(Exception):
    """Raised for invalid return transitions or values."""
    pass


@dataclass
class ReturnDetails:
    return_type: str | None = None
    loss_amount: float = 0.0
    claim_status: str = CLAIM_NONE
    received_status: str = RECEIVED_PENDING
    bank_settled: bool = False

    @property
    def state(self) -> str:
        return self.return_type or "Unclassified"

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["state"] = self.state
        return payload


def loss_is_active(order: Any, *, returned_status: str = RETURNED_STATUS) -> bool:
    """True when the order's loss is a live deduction from net profit."""
    return (
        text_field(order, "status") == returned_status
        and text_field(order, "return_type") == RETURN_TYPE_CUSTOMER
        and text_field(order, "claim_status") != CLAIM_APPROVED
    )


def open_return_details(order: Any) -> ReturnDetails:
    """
    Editing context for an order entering (or already in) the returned status.

    Seeded from the order's stored return fields; absent or unrecognized
    values fall back to the Unclassified defaults.
    """
    return_type = field(order, "return_type")
    if return_type not in RETURN_TYPES:
        return_type = None

    claim_status = text_field(order, "claim_status")
    if claim_status not in CLAIM_STATUSES:
        claim_status = CLAIM_NONE

    received_status = text_field(order, "received_status")
    if received_status not in RECEIVED_STATUSES:
        received_status = RECEIVED_PENDING

    details = ReturnDetails(
        return_type=return_type,
        loss_amount=number_field(order, "loss_amount"),
        claim_status=claim_status,
        received_status=received_status,
        bank_settled=bool(field(order, "bank_settled", False)),
    )
    if return_type == RETURN_TYPE_COURIER:
        _enter_courier(details)
    return details


def _enter_courier(details: ReturnDetails) -> None:
    details.return_type = RETURN_TYPE_COURIER
    details.loss_amount = 0.0
    details.claim_status = CLAIM_NONE


def classify_return(details: ReturnDetails, return_type: str | None) -> ReturnDetails:
    """Move between Unclassified, Courier and Customer, running entry actions."""
    if return_type in (None, ""):
        details.return_type = None
    elif return_type == RETURN_TYPE_COURIER:
        _enter_courier(details)
    elif return_type == RETURN_TYPE_CUSTOMER:
        details.return_type = RETURN_TYPE_CUSTOMER
        if details.claim_status in (None, "", CLAIM_NONE):
            details.claim_status = CLAIM_PENDING
    else:
        raise ReturnError(f"return_type must be one of: {', '.join(RETURN_TYPES)}")
    return details


def set_claim_status(details: ReturnDetails, claim_status: str) -> ReturnDetails:
    if claim_status not in CLAIM_STATUSES:
        raise ReturnError(f"claim_status must be one of: {', '.join(CLAIM_STATUSES)}")

    if details.return_type == RETURN_TYPE_COURIER:
        # Courier returns cannot carry a claim
        details.claim_status = CLAIM_NONE
        return details

    if details.return_type is None and claim_status != CLAIM_NONE:
        raise ReturnError("Classify the return as Customer before setting a claim status")

    details.claim_status = claim_status
    return details


def _parse_amount(value: Any) -> float:
    if isinstance(value, bool):
        raise ReturnError("loss_amount must be a number")
    try:
        amount = Decimal(str(value).strip() or "0")
    except (InvalidOperation, ValueError):
        raise ReturnError("loss_amount must be a number")
    if not amount.is_finite():
        raise ReturnError("loss_amount must be a finite number")
    if amount < 0:
        raise ReturnError("loss_amount must be >= 0")
    return float(amount.quantize(Decimal("0.01")))


def set_loss_amount(details: ReturnDetails, amount: Any) -> ReturnDetails:
    value = _parse_amount(amount)

    if details.return_type == RETURN_TYPE_COURIER:
        details.loss_amount = 0.0
        return details

    if details.return_type is None and value != 0:
        raise ReturnError("Classify the return as Customer before recording a loss")

    details.loss_amount = value
    return details


def set_received_status(details: ReturnDetails, received_status: str) -> ReturnDetails:
    if received_status not in RECEIVED_STATUSES:
        raise ReturnError(f"received_status must be one of: {', '.join(RECEIVED_STATUSES)}")
    details.received_status = received_status
    return details


def set_bank_settled(details: ReturnDetails, bank_settled: Any) -> ReturnDetails:
    if not isinstance(bank_settled, bool):
        raise ReturnError("bank_settled must be true or false")
    details.bank_settled = bank_settled
    return details


def build_return_details(order: Any, payload: dict | None) -> ReturnDetails:
    """
    Apply an operator's edit on top of the order's current return fields.

    Classification runs first so its entry actions cannot be overridden by a
    loss or claim submitted in the same payload.
    """
    payload = payload or {}
    if not isinstance(payload, dict):
        raise ReturnError("Invalid JSON payload")

    details = open_return_details(order)

    if "return_type" in payload:
        classify_return(details, payload["return_type"])
    if "claim_status" in payload:
        set_claim_status(details, payload["claim_status"])
    if "loss_amount" in payload:
        set_loss_amount(details, payload["loss_amount"])
    if "received_status" in payload:
        set_received_status(details, payload["received_status"])
    if "bank_settled" in payload:
        set_bank_settled(details, payload["bank_settled"])

    return details


def _assign(record: Any, name: str, value: Any) -> None:
    if isinstance(record, MutableMapping):
        record[name] = value
    else:
        setattr(record, name, value)


def apply_return_details(
    order: Any,
    details: ReturnDetails,
    *,
    returned_status: str = RETURNED_STATUS,
) -> Any:
    """Write the details onto the order and move it into the returned status."""
    if details.return_type == RETURN_TYPE_COURIER:
        _enter_courier(details)

    _assign(order, "status", returned_status)
    _assign(order, "return_type", details.return_type)
    _assign(order, "loss_amount", details.loss_amount)
    _assign(order, "claim_status", details.claim_status)
    _assign(order, "received_status", details.received_status)
    _assign(order, "bank_settled", details.bank_settled)
    return order

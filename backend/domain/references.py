"""
Fulfillment order references.

A reference is either a real Printful order id or a placeholder fabricated
locally when Printful calls are skipped outside production. Keeping them as
distinct types lets callers reject placeholders with isinstance() instead of
matching on an id prefix.

Persisted on the order as two columns: ``printful_order_id`` and
``fulfillment_ref_kind`` ("real" | "placeholder").
"""
from dataclasses import dataclass
from typing import Optional, Union

REAL = "real"
PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class RealFulfillmentRef:
    order_id: str

    kind = REAL

    @property
    def value(self) -> str:
        return self.order_id


@dataclass(frozen=True)
class PlaceholderFulfillmentRef:
    synthetic_id: str

    kind = PLACEHOLDER

    @property
    def value(self) -> str:
        return self.synthetic_id


FulfillmentReference = Union[RealFulfillmentRef, PlaceholderFulfillmentRef]


def from_columns(order_id: Optional[str], kind: Optional[str]) -> Optional[FulfillmentReference]:
    """Rebuild a reference from its stored columns. Rows without a kind predate the column and are real."""
    if not order_id:
        return None
    if kind == PLACEHOLDER:
        return PlaceholderFulfillmentRef(order_id)
    return RealFulfillmentRef(order_id)


def to_columns(ref: Optional[FulfillmentReference]) -> dict:
    if ref is None:
        return {"printful_order_id": None, "fulfillment_ref_kind": None}
    return {"printful_order_id": ref.value, "fulfillment_ref_kind": ref.kind}

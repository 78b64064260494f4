"""Actions accepted by the cart engine."""

from dataclasses import dataclass
from typing import Any

from cart.keys import LineKey
from cart.lines import CartLine


@dataclass(frozen=True)
class AddItem:
    line: CartLine


@dataclass(frozen=True)
class RemoveItem:
    key: LineKey | str


@dataclass(frozen=True)
class UpdateQuantity:
    key: LineKey | str
    quantity: int


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class LoadCart:
    """Bulk-replace the cart from a persisted snapshot (raw, unvalidated)."""

    lines: Any


CartAction = AddItem | RemoveItem | UpdateQuantity | ClearCart | LoadCart

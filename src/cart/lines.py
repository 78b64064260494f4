"""Cart lines and the derived cart state."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from cart.keys import LineKey, key_for


class CartLine(BaseModel):
    """One (product, variant) selection with a quantity."""

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(min_length=1)
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    size: str | None = None
    color: str | None = None
    image_url: str | None = None

    @field_validator("size", "color", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        return None if value == "" else value

    @property
    def key(self) -> LineKey:
        return key_for(self.product_id, self.size, self.color)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


LINE_LIST = TypeAdapter(list[CartLine])


def round2(amount: float) -> float:
    return round(amount, 2)


@dataclass(frozen=True)
class CartState:
    """Authoritative cart contents.

    ``total`` and ``item_count`` are derived from ``lines``; build states
    through ``from_lines`` so they are always recomputed together.
    """

    lines: tuple[CartLine, ...] = ()
    total: float = 0.0
    item_count: int = 0

    @classmethod
    def from_lines(cls, lines) -> "CartState":
        lines = tuple(lines)
        return cls(
            lines=lines,
            total=round2(sum(line.line_total for line in lines)),
            item_count=sum(line.quantity for line in lines),
        )

    @classmethod
    def empty(cls) -> "CartState":
        return cls()

    def find(self, key: LineKey) -> CartLine | None:
        return next((line for line in self.lines if line.key == key), None)

    def to_json(self) -> bytes:
        """Serialize the line list (not the derived totals) for the durable slot."""
        return LINE_LIST.dump_json(list(self.lines))

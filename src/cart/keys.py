"""Item key codec: variant identity of a cart line.

A cart line is identified by ``(product_id, size, color)``. Inside the cart
that identity travels as a ``LineKey`` tuple. UI surfaces that need a flat
string use ``encode``/``decode``:

    key = "<product_id>-<size or 'nosize'>-<color or 'nocolor'>"

Product ids may contain hyphens (UUIDs do), so decoding always takes the last
two segments as size and color and rejoins the rest as the product id. Size
and color values that would break that split (a hyphen as in "2-3Y", a "%",
or a sentinel word) are percent-escaped, e.g. ``p1-2%2D3Y-Red``. Keys of
all other values are left as they are.
"""

from typing import NamedTuple
from urllib.parse import unquote

import structlog

logger = structlog.get_logger(__name__)

SEPARATOR = "-"
NO_SIZE = "nosize"
NO_COLOR = "nocolor"


class LineKey(NamedTuple):
    product_id: str
    size: str | None = None
    color: str | None = None


def normalize(value: str | None) -> str | None:
    """Treat ``None`` and the empty string as the same unset variant attribute."""
    if value is None or value == "":
        return None
    return value


def key_for(product_id, size=None, color=None) -> LineKey:
    """Build the structured identity for a line."""
    return LineKey(str(product_id), normalize(size), normalize(color))


def _escape_variant(value: str | None, sentinel: str) -> str:
    if value is None:
        return sentinel
    if value in (NO_SIZE, NO_COLOR):
        return f"%{ord(value[0]):02X}{value[1:]}"
    return value.replace("%", "%25").replace(SEPARATOR, "%2D")


def encode(key: LineKey) -> str:
    """Flatten a ``LineKey`` into its string form."""
    size = _escape_variant(normalize(key.size), NO_SIZE)
    color = _escape_variant(normalize(key.color), NO_COLOR)
    return SEPARATOR.join((key.product_id, size, color))


def decode(key: str) -> LineKey:
    """Recover the ``LineKey`` from its string form.

    Keys with fewer than three segments cannot carry a variant; the whole
    string is taken as the product id.
    """
    parts = key.rsplit(SEPARATOR, 2)
    if len(parts) < 3:
        logger.warning("Malformed item key", key=key)
        return LineKey(key, None, None)

    product_id, size, color = parts
    return LineKey(
        product_id,
        None if size == NO_SIZE else unquote(size),
        None if color == NO_COLOR else unquote(color),
    )


def coerce(key: "LineKey | str") -> LineKey:
    """Accept either a structured key or its string form."""
    if isinstance(key, LineKey):
        return key_for(*key)
    return decode(key)

"""Cart reducer: pure state transitions.

``reduce`` never mutates its input. When an action has no effect the same
state object is returned, which the engine uses to skip persistence.
"""

import structlog
from pydantic import ValidationError

from cart.actions import AddItem, CartAction, ClearCart, LoadCart, RemoveItem, UpdateQuantity
from cart.keys import coerce
from cart.lines import LINE_LIST, CartState

logger = structlog.get_logger(__name__)


def _add_item(state: CartState, action: AddItem) -> CartState:
    incoming = action.line
    existing = state.find(incoming.key)
    if existing is None:
        return CartState.from_lines((*state.lines, incoming))

    merged = existing.model_copy(update={"quantity": existing.quantity + incoming.quantity})
    return CartState.from_lines(merged if line is existing else line for line in state.lines)


def _remove_item(state: CartState, action: RemoveItem) -> CartState:
    key = coerce(action.key)
    if state.find(key) is None:
        return state
    return CartState.from_lines(line for line in state.lines if line.key != key)


def _update_quantity(state: CartState, action: UpdateQuantity) -> CartState:
    key = coerce(action.key)
    target = state.find(key)
    if target is None:
        logger.warning(
            "Quantity update for item not in cart",
            key=key,
            available=[line.key for line in state.lines],
        )
        return state

    if action.quantity <= 0:
        return CartState.from_lines(line for line in state.lines if line is not target)

    updated = target.model_copy(update={"quantity": action.quantity})
    return CartState.from_lines(updated if line is target else line for line in state.lines)


def _load_cart(state: CartState, action: LoadCart) -> CartState:
    if not isinstance(action.lines, list):
        logger.warning("Rejected cart snapshot, expected a list", payload_type=type(action.lines).__name__)
        return state
    try:
        lines = LINE_LIST.validate_python(action.lines)
    except ValidationError as exc:
        logger.warning("Rejected malformed cart snapshot", errors=exc.error_count())
        return state

    # A snapshot written by an older build may hold duplicate identities
    merged = CartState.empty()
    for line in lines:
        merged = _add_item(merged, AddItem(line))
    return merged


def reduce(state: CartState, action: CartAction) -> CartState:
    if isinstance(action, AddItem):
        return _add_item(state, action)
    if isinstance(action, RemoveItem):
        return _remove_item(state, action)
    if isinstance(action, UpdateQuantity):
        return _update_quantity(state, action)
    if isinstance(action, ClearCart):
        return CartState.empty()
    if isinstance(action, LoadCart):
        return _load_cart(state, action)

    logger.warning("Unknown cart action", action=type(action).__name__)
    return state

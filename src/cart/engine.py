"""Cart engine: single-writer owner of the cart state.

Every mutation goes through ``dispatch``, which applies actions one at a time
in submission order, notifies subscribers, and writes the new line list to
the durable slot. A failed write is logged and otherwise ignored: the
in-memory state stays authoritative for the running session.

Construct one engine at process start and pass it to the code that needs the
cart (the checkout service, API handlers)::

    engine = CartEngine.start(FileStorage())
    engine.add_item(CartLine(product_id="p-1", name="Kurta", unit_price=499.0, quantity=1))
"""

import json
import threading
from collections.abc import Callable

import structlog

from cart.actions import AddItem, CartAction, ClearCart, LoadCart, RemoveItem, UpdateQuantity
from cart.keys import LineKey
from cart.lines import CartLine, CartState
from cart.reducer import reduce
from cart.storage import CartStorage, MemoryStorage

logger = structlog.get_logger(__name__)

Listener = Callable[[CartState], None]


class CartEngine:
    def __init__(self, storage: CartStorage | None = None) -> None:
        self.storage = storage if storage is not None else MemoryStorage()
        self._state = CartState.empty()
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self._pending: list[CartAction] = []
        self._draining = False

    # -------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, storage: CartStorage | None = None) -> "CartEngine":
        """Create an engine and rehydrate it from the last persisted snapshot."""
        engine = cls(storage)
        engine.rehydrate()
        return engine

    def rehydrate(self) -> None:
        """Load the persisted snapshot; discard it if it cannot be read.

        Never raises: a corrupt or unreadable slot results in an empty cart.
        """
        try:
            raw = self.storage.read()
        except OSError as exc:
            logger.warning("Cart snapshot unreadable, starting empty", error=str(exc))
            return
        if not raw:
            return

        try:
            lines = json.loads(raw)
        except ValueError as exc:
            logger.warning("Discarding corrupt cart snapshot", error=str(exc))
            self._discard_snapshot()
            return

        if not isinstance(lines, list):
            logger.warning("Discarding cart snapshot that is not a line list")
            self._discard_snapshot()
            return
        if not lines:
            return

        before = self._state
        self.dispatch(LoadCart(lines))
        if self._state is before:
            self._discard_snapshot()
        else:
            logger.info("Cart restored", lines=len(self._state.lines), item_count=self._state.item_count)

    def _discard_snapshot(self) -> None:
        try:
            self.storage.clear()
        except OSError as exc:
            logger.warning("Could not remove cart snapshot", error=str(exc))

    # -------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------
    @property
    def state(self) -> CartState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with the new state after each change.

        Returns a callable that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def dispatch(self, action: CartAction) -> CartState:
        """Apply an action and return the resulting state.

        Actions dispatched from inside a listener are queued and applied
        after the current one finishes.
        """
        with self._lock:
            self._pending.append(action)
            if self._draining:
                return self._state

            self._draining = True
            try:
                while self._pending:
                    self._apply(self._pending.pop(0))
            finally:
                self._draining = False
            return self._state

    def _apply(self, action: CartAction) -> None:
        previous = self._state
        self._state = reduce(previous, action)
        if self._state is previous:
            return

        self._persist()
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Cart listener failed", action=type(action).__name__)

    def _persist(self) -> None:
        try:
            self.storage.write(self._state.to_json())
        except Exception as exc:
            logger.warning("Cart snapshot not saved", error=str(exc))

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def add_item(self, line: CartLine) -> CartState:
        return self.dispatch(AddItem(line))

    def remove_item(self, key: LineKey | str) -> CartState:
        return self.dispatch(RemoveItem(key))

    def update_quantity(self, key: LineKey | str, quantity: int) -> CartState:
        return self.dispatch(UpdateQuantity(key, quantity))

    def clear_cart(self) -> CartState:
        return self.dispatch(ClearCart())

    def load_cart(self, lines) -> CartState:
        return self.dispatch(LoadCart(lines))

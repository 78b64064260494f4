"""Durable slot for the cart snapshot.

The snapshot is a JSON array of cart lines held under one fixed key. It is
read once when the engine starts and overwritten after each mutation.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path

CART_SLOT = "storefront-cart"


class CartStorage(ABC):
    """Abstract single-slot store."""

    @abstractmethod
    def read(self) -> bytes | None:
        """Return the stored snapshot, or ``None`` when the slot is empty."""
        ...

    @abstractmethod
    def write(self, payload: bytes) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemoryStorage(CartStorage):
    """Process-local slot, for tests and headless use."""

    def __init__(self, payload: bytes | None = None) -> None:
        self.payload = payload
        self.writes = 0

    def read(self) -> bytes | None:
        return self.payload

    def write(self, payload: bytes) -> None:
        self.payload = payload
        self.writes += 1

    def clear(self) -> None:
        self.payload = None


class FileStorage(CartStorage):
    """Slot backed by ``<directory>/<slot>.json``.

    Writes go to a sibling temp file and are renamed into place so a crash
    mid-write never leaves a truncated snapshot behind.
    """

    def __init__(self, directory: str | os.PathLike | None = None, slot: str = CART_SLOT) -> None:
        directory = directory or os.environ.get("CART_STORAGE_DIR") or Path.home() / ".storefront"
        self.path = Path(directory) / f"{slot}.json"

    def read(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def write(self, payload: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_suffix(".tmp")
        staging.write_bytes(payload)
        staging.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

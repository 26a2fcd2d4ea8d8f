"""Buyer directory port.

Authentication and user profiles live outside this service. The ordering
context only needs to resolve a caller id into a profile (name, contact
details and role); the directory is the seam where the real user store
plugs in.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"


@dataclass(frozen=True)
class Buyer:
    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    role: str = ROLE_CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class BuyerDirectory(ABC):
    @abstractmethod
    def get(self, buyer_id: str) -> Buyer | None:
        """Return the buyer profile, or None for an unknown id."""
        ...


class InMemoryBuyerDirectory(BuyerDirectory):
    def __init__(self, buyers: list[Buyer] | None = None) -> None:
        self._buyers: dict[str, Buyer] = {}
        self._lock = threading.Lock()
        for buyer in buyers or []:
            self.add(buyer)

    def add(self, buyer: Buyer) -> Buyer:
        with self._lock:
            self._buyers[str(buyer.id)] = buyer
        return buyer

    def get(self, buyer_id: str) -> Buyer | None:
        with self._lock:
            return self._buyers.get(str(buyer_id))

    def reset(self) -> None:
        with self._lock:
            self._buyers.clear()


_current_directory: BuyerDirectory | None = None


def get_directory() -> BuyerDirectory:
    """Return the active buyer directory. Defaults to an empty in-memory one."""
    global _current_directory
    if _current_directory is None:
        _current_directory = InMemoryBuyerDirectory()
    return _current_directory


def set_directory(directory: BuyerDirectory) -> None:
    global _current_directory
    _current_directory = directory


def reset_directory() -> None:
    global _current_directory
    _current_directory = None

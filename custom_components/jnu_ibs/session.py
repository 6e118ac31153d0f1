"""Post-login identity state for an IBS client."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class IBSSession:
    """Identity established by a successful login."""

    customer_id: str | None = None
    room: str | None = None

    @property
    def is_authenticated(self) -> bool:
        """Return True if a customer id is held."""
        return bool(self.customer_id)

    def establish(self, customer_id: str, room: str) -> None:
        """Store the identity returned by the Login procedure."""
        self.customer_id = customer_id
        self.room = room

    def clear(self) -> None:
        """Forget the identity."""
        self.customer_id = None
        self.room = None

"""Two-step ownership handover embedded in admin-gated components."""
from __future__ import annotations

from .errors import AuthorizationError, ValidationError
from .events import EventLog


class Ownable:
    """Owner plus an optional nominee who must accept before taking over."""

    def __init__(self, owner: str, events: EventLog) -> None:
        if not owner:
            raise ValidationError("Owner address cannot be empty")
        self.owner = owner
        self.nominated_owner: str | None = None
        self._events = events

    def require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise AuthorizationError("Only the contract owner may perform this action")

    def nominate_new_owner(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller)
        self.nominated_owner = new_owner
        self._events.emit("OwnerNominated", new_owner=new_owner)

    def accept_ownership(self, caller: str) -> None:
        if self.nominated_owner is None or caller != self.nominated_owner:
            raise AuthorizationError(
                "You must be nominated before you can accept ownership"
            )
        old_owner = self.owner
        self.owner = caller
        self.nominated_owner = None
        self._events.emit("OwnerChanged", old_owner=old_owner, new_owner=caller)

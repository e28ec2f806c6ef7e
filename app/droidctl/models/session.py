"""Batch session models."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """Opaque reference to a submitted batch session."""

    id: str


@dataclass(frozen=True, slots=True)
class SessionProgress:
    """Per-outcome request counts of a batch session."""

    pending: int = 0
    running: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        """Total number of requests in the session."""
        return self.pending + self.running + self.succeeded + self.failed + self.cancelled

    @property
    def done(self) -> bool:
        """Check if every request reached a terminal outcome."""
        return self.pending == 0 and self.running == 0

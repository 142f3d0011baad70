"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class. Stores and the gate do the work; the dataclass only
knows which of its fields are safe to expose.

Layer rule: no imports from api/ or sessions/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Identity:
    """A principal that can sign in to the admin area.

    email is always stored trimmed and lowercased so lookups can compare it
    directly. password_hash is a bcrypt hash and is None for principals that
    never log in with a password (the legacy API key principal).
    """

    id: str
    email: str
    name: str
    role: str  # "admin" is the only role with write access
    password_hash: str | None = None

    def public_fields(self) -> dict:
        """The fields that may be embedded in a session token or returned to clients."""
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role}

"""
Identity types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront._types import UserId


class Role(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Identity:
    """
    A verified caller.

    Produced by the verifier for one request; never mutated.
    """

    id: UserId
    email: str
    role: Role = Role.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def owns(self, user_id: UserId) -> bool:
        return self.id == user_id


__all__ = ("Role", "Identity")

"""Caller identity and the session collaborator contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class PlanTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | None) -> "PlanTier":
        if not value:
            return cls.FREE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.FREE


@dataclass(frozen=True, slots=True)
class Session:
    account_id: str | None
    plan: PlanTier = PlanTier.FREE


@dataclass(frozen=True, slots=True)
class Identity:
    """Who is converting: an account when signed in, otherwise an IP address."""

    ip_address: str = "unknown"
    user_agent: str = "unknown"
    account_id: str | None = None
    plan: PlanTier = PlanTier.FREE

    @property
    def is_authenticated(self) -> bool:
        return self.account_id is not None

    @property
    def key(self) -> str:
        return self.account_id if self.account_id is not None else self.ip_address

    @classmethod
    def from_session(cls, session: Session | None, *, ip_address: str, user_agent: str) -> "Identity":
        if session is None:
            return cls(ip_address=ip_address, user_agent=user_agent)
        return cls(
            ip_address=ip_address,
            user_agent=user_agent,
            account_id=session.account_id,
            plan=session.plan,
        )


class SessionLookup(Protocol):
    async def lookup(self, request: Any) -> Session | None:  # pragma: no cover - interface
        ...


class AnonymousSessions:
    """Session lookup used when no authentication backend is wired in."""

    async def lookup(self, request: Any) -> Session | None:
        return None


__all__ = ["AnonymousSessions", "Identity", "PlanTier", "Session", "SessionLookup"]

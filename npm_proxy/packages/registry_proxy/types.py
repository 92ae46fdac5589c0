"""Registry proxy types and data structures.

This module contains shared types used across the registry proxy package.
No dependencies on npm_proxy.* modules to maintain independence.
"""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

import httpx

T = TypeVar("T")


@dataclass(frozen=True)
class RegistryConfig:
    """Configuration for a set of equivalent registry mirrors.

    Attributes:
        mirror_urls: Base URLs of the mirrors, without trailing slash
                     (e.g. ("https://registry.npmjs.org",))
        connect_timeout: Seconds allowed to open a connection to a mirror
        read_timeout: Seconds allowed between two reads from a mirror
        user_agent: User-Agent header sent with every request
        max_keepalive_connections: Idle connections kept in the shared pool
    """

    mirror_urls: tuple[str, ...]
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    user_agent: str = "npm-mirror-proxy"
    max_keepalive_connections: int = 20


@dataclass
class MirrorOutcome:
    """What a single mirror answered during a race.

    Exactly one of ``response`` and ``error`` is set.
    """

    mirror_url: str
    url: str
    response: Optional[httpx.Response] = None
    error: Optional[str] = None

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def describe(self) -> dict:
        if self.response is not None:
            return {"mirror": self.mirror_url, "status_code": self.status_code}
        return {"mirror": self.mirror_url, "error": self.error}

    async def aclose(self) -> None:
        if self.response is not None:
            await self.response.aclose()


@dataclass
class RaceResult(Generic[T]):
    """Result of racing several awaitables for a qualifying outcome.

    Attributes:
        winner: First outcome that satisfied the predicate, if any
        failures: Every other outcome that settled, in completion order
    """

    winner: Optional[T] = None
    failures: list[T] = field(default_factory=list)

    def settled(self) -> list[T]:
        """Winner (if any) followed by every failure."""
        if self.winner is None:
            return list(self.failures)
        return [self.winner, *self.failures]

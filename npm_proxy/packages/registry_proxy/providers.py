"""Registry client providers.

This module provides the RegistryClient protocol and the httpx-backed
implementation that races the same request against several mirrors.
"""

from typing import Any, Optional, Protocol

import httpx
import structlog

from .race import first_successful
from .types import MirrorOutcome, RaceResult, RegistryConfig

logger = structlog.stdlib.get_logger(__name__)


class RegistryClient(Protocol):
    """Protocol for registry client implementations."""

    async def race_fetch(
        self,
        path: str,
        headers: Optional[dict[str, str]] = None,
        log: Any = None,
    ) -> Optional[httpx.Response]:
        """Request ``path`` from every mirror and return the first 200.

        Args:
            path: URL path appended to every mirror base URL (e.g. "/react")
            headers: Extra request headers (e.g. {"Accept": "application/json"})
            log: Structlog logger to report on, defaults to the module logger

        Returns:
            Streaming response of the winning mirror, positioned at its body,
            or None when no mirror answered with a 200
        """
        ...

    async def aclose(self) -> None: ...


class MirrorRegistryClient:
    """Races GET requests across equivalent registry mirrors.

    A single keep-alive httpx.AsyncClient is shared by every call; transport
    errors and non-200 answers only disqualify the mirror that produced them.
    """

    def __init__(
        self,
        config: RegistryConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the mirror client.

        Args:
            config: Mirror URLs and connection settings
            transport: Optional transport override (e.g. httpx.MockTransport)
        """
        if not config.mirror_urls:
            raise ValueError("At least one mirror URL is required")

        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.read_timeout,
                pool=config.connect_timeout,
            ),
            limits=httpx.Limits(
                max_keepalive_connections=config.max_keepalive_connections,
            ),
            headers={"User-Agent": config.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def _fetch_from_mirror(
        self,
        mirror_url: str,
        path: str,
        headers: Optional[dict[str, str]],
        log: Any,
    ) -> MirrorOutcome:
        url = f"{mirror_url}{path}"
        log.debug("Fetching from mirror", url=url)

        try:
            request = self._client.build_request("GET", url, headers=headers)
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            log.debug("Mirror request failed", url=url, error=str(e))
            return MirrorOutcome(
                mirror_url=mirror_url,
                url=url,
                error=f"{type(e).__name__}: {e}",
            )

        return MirrorOutcome(mirror_url=mirror_url, url=url, response=response)

    async def race_fetch(
        self,
        path: str,
        headers: Optional[dict[str, str]] = None,
        log: Any = None,
    ) -> Optional[httpx.Response]:
        log = log or logger

        result: RaceResult[MirrorOutcome] = RaceResult()
        try:
            await first_successful(
                [
                    self._fetch_from_mirror(mirror_url, path, headers, log)
                    for mirror_url in self.config.mirror_urls
                ],
                predicate=lambda outcome: outcome.ok,
                result=result,
            )
        except BaseException:
            # aborted race: nobody will read what already arrived
            for outcome in result.settled():
                await outcome.aclose()
            raise

        if result.winner is None:
            log.error(
                "No mirror returned a successful response",
                path=path,
                mirrors=[outcome.describe() for outcome in result.failures],
            )
        else:
            log.debug(
                "Mirror won race",
                url=result.winner.url,
                losers=len(result.failures),
            )

        for outcome in result.failures:
            await outcome.aclose()

        return result.winner.response if result.winner is not None else None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MirrorRegistryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

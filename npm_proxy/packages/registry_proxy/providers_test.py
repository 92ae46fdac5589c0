import asyncio

import httpx
import pytest
from structlog.testing import capture_logs

from npm_proxy.packages.registry_proxy import MirrorRegistryClient, RegistryConfig
from npm_proxy.tests.fixtures_mirrors import MIRROR_A, MIRROR_B, FakeMirrors
from npm_proxy.utils.logging import request_logger


class TestRaceFetch:
    @pytest.mark.parametrize("loser_delay", [0.0, 0.05])
    async def test_only_successful_mirror_wins_regardless_of_latency(
        self,
        registry_client: MirrorRegistryClient,
        fake_mirrors: FakeMirrors,
        loser_delay: float,
    ):
        fake_mirrors.respond(MIRROR_A, "/react", 404, delay=loser_delay)
        fake_mirrors.respond(MIRROR_B, "/react", content=b"from-b", delay=0.02)

        response = await registry_client.race_fetch("/react")

        assert response is not None
        assert response.status_code == 200
        assert await response.aread() == b"from-b"

    async def test_no_successful_mirror_returns_none(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.respond(MIRROR_A, "/nope", 404)
        fake_mirrors.respond(MIRROR_B, "/nope", 404)

        assert await registry_client.race_fetch("/nope") is None

    async def test_connection_error_is_not_a_winner(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.refuse(MIRROR_A, "/react")
        fake_mirrors.respond(MIRROR_B, "/react", content=b"ok", delay=0.01)

        response = await registry_client.race_fetch("/react")

        assert response is not None
        assert await response.aread() == b"ok"

    async def test_every_mirror_failing_is_logged_once_with_all_statuses(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.respond(MIRROR_A, "/gone", 500)
        fake_mirrors.refuse(MIRROR_B, "/gone")

        with capture_logs() as logs:
            assert await registry_client.race_fetch("/gone") is None

        errors = [log for log in logs if log["log_level"] == "error"]
        assert len(errors) == 1
        mirrors = {entry["mirror"]: entry for entry in errors[0]["mirrors"]}
        assert mirrors[MIRROR_A]["status_code"] == 500
        assert "ConnectError" in mirrors[MIRROR_B]["error"]

    async def test_sends_same_path_and_headers_to_every_mirror(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        await registry_client.race_fetch(
            "/@foo%2Fbar", headers={"Accept": "application/json"}
        )

        assert fake_mirrors.requested_paths(MIRROR_A) == ["/@foo%2Fbar"]
        assert fake_mirrors.requested_paths(MIRROR_B) == ["/@foo%2Fbar"]
        for request in fake_mirrors.requests:
            assert request.headers["Accept"] == "application/json"
            assert request.headers["User-Agent"] == "npm-mirror-proxy"

    async def test_uses_logger_passed_by_caller(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        with capture_logs() as logs:
            log = request_logger(request_id="abc")
            await registry_client.race_fetch("/missing", log=log)

        assert logs
        assert all(entry["request_id"] == "abc" for entry in logs)

class TestLoserRelease:
    async def test_losing_response_is_closed_after_a_win(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.respond(MIRROR_A, "/react", 404)
        fake_mirrors.respond(MIRROR_B, "/react", content=b"from-b", delay=0.01)

        response = await registry_client.race_fetch("/react")

        [loser] = fake_mirrors.responses_from(MIRROR_A)
        assert loser.is_closed
        assert not response.is_closed
        await response.aclose()

    async def test_every_response_is_closed_when_no_mirror_wins(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.respond(MIRROR_A, "/nope", 404)
        fake_mirrors.respond(MIRROR_B, "/nope", 503, delay=0.01)

        assert await registry_client.race_fetch("/nope") is None

        assert len(fake_mirrors.responses) == 2
        assert all(response.is_closed for response in fake_mirrors.responses)

    async def test_settled_response_is_closed_when_caller_is_cancelled(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.respond(MIRROR_A, "/slow", 404)
        fake_mirrors.respond(MIRROR_B, "/slow", delay=10)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(registry_client.race_fetch("/slow"), timeout=0.05)

        [loser] = fake_mirrors.responses_from(MIRROR_A)
        assert loser.is_closed
        assert fake_mirrors.responses_from(MIRROR_B) == []

    async def test_settled_response_is_closed_when_a_mirror_raises(
        self, registry_client: MirrorRegistryClient, fake_mirrors: FakeMirrors
    ):
        fake_mirrors.respond(MIRROR_A, "/broken", 404)
        fake_mirrors.crash(MIRROR_B, "/broken", RuntimeError("bug"), delay=0.02)

        with pytest.raises(RuntimeError, match="bug"):
            await registry_client.race_fetch("/broken")

        [loser] = fake_mirrors.responses_from(MIRROR_A)
        assert loser.is_closed



def test_requires_at_least_one_mirror():
    with pytest.raises(ValueError):
        MirrorRegistryClient(
            config=RegistryConfig(mirror_urls=()),
            transport=httpx.MockTransport(lambda request: httpx.Response(200)),
        )

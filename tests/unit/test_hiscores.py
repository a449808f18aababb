"""Unit tests for the hiscores client and its CSV parser."""

import httpx
import pytest

from hstrack.errors import HiscoresUnavailableError, PlayerNotOnHiscoresError
from hstrack.hiscores import HttpHiscoresClient, parse_lite_csv
from hstrack.metrics import SKILLS

BASE_URL = "https://hiscores.test/index_lite.ws"


def _lite_body(attack_experience: int = 13_034_431) -> str:
    lines = []
    for index, skill in enumerate(SKILLS):
        if skill == "attack":
            lines.append(f"1022,99,{attack_experience}")
        elif skill == "construction":
            lines.append("-1,1,-1")
        else:
            lines.append(f"{index * 100},50,{index * 1000}")
    # Activity and boss lines follow the skills
    lines.extend(["-1,-1", "532,12"])
    return "\n".join(lines) + "\n"


def _client(handler) -> HttpHiscoresClient:
    return HttpHiscoresClient(base_url=BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler))


class TestParseLiteCsv:
    def test_parses_skills(self):
        data = parse_lite_csv("zezima", _lite_body())

        assert data.username == "zezima"
        assert data.stats["attack_experience"] == 13_034_431
        assert data.stats["attack_rank"] == 1022
        assert data.stats["construction_experience"] == -1
        assert len(data.stats) == 2 * len(SKILLS)

    def test_too_few_lines(self):
        with pytest.raises(HiscoresUnavailableError):
            parse_lite_csv("zezima", "1,99,13034431\n")

    def test_malformed_line(self):
        body = _lite_body().replace("1022,99,13034431", "1022,99,lots")
        with pytest.raises(HiscoresUnavailableError, match="attack"):
            parse_lite_csv("zezima", body)


class TestHttpHiscoresClient:
    def test_fetch(self):
        seen = []

        def handler(request):
            seen.append(request.url.params["player"])
            return httpx.Response(200, text=_lite_body(42))

        data = _client(handler).fetch("Lord Ash")

        assert seen == ["Lord Ash"]
        assert data.stats["attack_experience"] == 42

    def test_not_on_hiscores(self):
        client = _client(lambda request: httpx.Response(404, text="Not found"))

        with pytest.raises(PlayerNotOnHiscoresError):
            client.fetch("nobody")

    def test_server_error(self):
        client = _client(lambda request: httpx.Response(503, text="Unavailable"))

        with pytest.raises(HiscoresUnavailableError, match="503"):
            client.fetch("zezima")

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(HiscoresUnavailableError):
            _client(handler).fetch("zezima")

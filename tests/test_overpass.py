import pytest
import requests

from org_locator.core.config import Settings
from org_locator.vendors import overpass


class DummyResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload or {}
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse(payload={"elements": []})
        self.error = None

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append((url, data, headers, timeout))
        if self.error:
            raise self.error
        return self.response


class DummyGovernor:
    def __init__(self):
        self.waits = 0

    def wait(self):
        self.waits += 1
        return 0.0


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(overpass, "_SESSION", session)
    return session


@pytest.fixture
def governor():
    return DummyGovernor()


SETTINGS = Settings(user_agent="test-agent/1.0", request_timeout=15.0)


def test_build_clauses_phone_fields():
    clauses = overpass.build_clauses(phone="+31612345678")
    assert len(clauses) == 5
    assert clauses[0] == 'node["phone"~"(\\\\+|00)31.*6.*1.*2.*3.*4.*5.*6.*7.*8"];'
    assert any('"contact:mobile"' in clause for clause in clauses)


def test_build_clauses_website_and_email_are_case_insensitive():
    clauses = overpass.build_clauses(website="jansen.nl", email="info@jansen.nl")
    assert len(clauses) == 6
    assert 'node["website"~"jansen\\\\.nl",i];' in clauses
    assert 'relation["email"~"info@jansen\\\\.nl",i];' in clauses


def test_build_clauses_local_phone_only_yields_nothing():
    assert overpass.build_clauses(phone="0612345678", website="  ") == []


def test_build_query_wraps_union():
    query = overpass.build_query(['node["a"~"b"];'], timeout=25)
    assert query.startswith("[out:json][timeout:25];")
    assert "(\n  node[\"a\"~\"b\"];\n);" in query


def test_search_without_attributes_skips_network(patch_session, governor):
    assert overpass.search_by_attributes(governor=governor, settings=SETTINGS) == []
    assert patch_session.calls == []
    assert governor.waits == 0


def test_search_posts_query_and_recomputes_evidence(patch_session, governor):
    patch_session.response = DummyResponse(
        payload={
            "elements": [
                {"type": "node", "id": 1, "tags": {"name": "A", "phone": "+31 6 1234 5678"}},
                {"type": "node", "id": 1, "tags": {"name": "A", "phone": "+31 6 1234 5678"}},
                {"type": "node", "id": 2, "tags": {"name": "B", "mobile": "+31 6 0000 0000"}},
            ]
        }
    )

    results = overpass.search_by_attributes(phone="+31612345678", governor=governor, settings=SETTINGS)

    assert [c.identity for c in results] == ["node/1", "node/2"]
    assert results[0].evidence == {"phone"}
    assert results[1].evidence == {"other"}
    url, data, headers, timeout = patch_session.calls[0]
    assert url == SETTINGS.overpass_url
    assert data["data"].startswith("[out:json]")
    assert headers["User-Agent"] == "test-agent/1.0"
    assert timeout == 15.0
    assert governor.waits == 1


@pytest.mark.parametrize(
    "response, error",
    [
        (DummyResponse(status_code=429), None),
        (DummyResponse(bad_json=True), None),
        (DummyResponse(payload=["unexpected"]), None),
        (None, requests.Timeout("timed out")),
        (None, requests.ConnectionError("down")),
    ],
)
def test_search_degrades_to_empty(patch_session, governor, response, error, caplog):
    patch_session.response = response
    patch_session.error = error

    with caplog.at_level("WARNING"):
        results = overpass.search_by_attributes(email="info@jansen.nl", governor=governor, settings=SETTINGS)

    assert results == []
    assert "Overpass search failed" in " ".join(caplog.messages)


def test_fetch_elements_raises_http_error_on_server_error(patch_session):
    patch_session.response = DummyResponse(status_code=504)
    with pytest.raises(requests.HTTPError):
        overpass.fetch_elements("[out:json];", SETTINGS)

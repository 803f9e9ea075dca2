import argparse
import json

import pytest

from org_locator.core.config import Settings
from org_locator.jobs import resolve_org
from org_locator.models import Candidate


class DummyResolver:
    def __init__(self, results):
        self.results = results
        self.calls = []

    def resolve_regions(self, regions, **attributes):
        self.calls.append((list(regions), attributes))
        return self.results


@pytest.fixture
def dummy_resolver(monkeypatch):
    dummy = DummyResolver([Candidate(osm_type="node", osm_id=i, evidence={"name"}) for i in range(5)])
    monkeypatch.setattr(resolve_org, "get_settings", lambda: Settings(default_phone_region="NL", max_results=8))
    monkeypatch.setattr(resolve_org, "get_default_resolver", lambda: dummy)
    return dummy


def test_run_resolve_job_requires_an_attribute(dummy_resolver):
    with pytest.raises(ValueError):
        resolve_org.run_resolve_job(name=None, regions=[], phone=None, website=None, email=None, limit=8)
    assert dummy_resolver.calls == []


def test_run_resolve_job_formats_phone_and_truncates(dummy_resolver):
    result = resolve_org.run_resolve_job(
        name="Bakkerij Jansen",
        regions=["Utrecht"],
        phone="06 12345678",
        website=None,
        email=None,
        limit=3,
    )

    regions, attributes = dummy_resolver.calls[0]
    assert regions == ["Utrecht"]
    assert attributes["phone"] == "+31 6 12345678"
    assert result["total"] == 5
    assert len(result["candidates"]) == 3
    assert result["options"][-1]["token"] == "osmnode:none"


@pytest.mark.parametrize("limit", [0, -1])
def test_run_resolve_job_rejects_non_positive_limit(dummy_resolver, limit):
    with pytest.raises(ValueError, match="limit must be positive"):
        resolve_org.run_resolve_job(name="Jansen", regions=[], phone=None, website=None, email=None, limit=limit)
    assert dummy_resolver.calls == []


def test_main_exits_on_negative_limit(dummy_resolver, capsys):
    with pytest.raises(SystemExit) as excinfo:
        resolve_org.main(["--name", "Jansen", "--limit", "-1"])
    assert excinfo.value.code == 2
    assert "limit must be positive" in capsys.readouterr().err


def test_build_parser_defaults(dummy_resolver):
    parser = resolve_org.build_parser()
    args = parser.parse_args(["--name", "Jansen", "--region", "Utrecht", "--region", "Gelderland"])
    assert isinstance(parser, argparse.ArgumentParser)
    assert args.regions == ["Utrecht", "Gelderland"]
    assert args.limit == 8


def test_main_prints_json(dummy_resolver, capsys):
    resolve_org.main(["--name", "Jansen", "--limit", "2"])
    output = json.loads(capsys.readouterr().out)
    assert [c["identity"] for c in output["candidates"]] == ["node/0", "node/1"]

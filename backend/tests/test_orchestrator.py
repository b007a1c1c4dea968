"""
Tests for orchestrator.py - ordering, isolation and concurrency of the fan-out.
"""
import asyncio

import httpx
import pytest

from nexsearch.core.config import ProviderCapabilities
from nexsearch.schemas.search import PartialCompanyRecord, RecordStatus
from nexsearch.services.adapters import BaseAdapter
from nexsearch.services.orchestrator import FanOutOrchestrator

from tests.fixtures.search_fixtures import make_settings


class StubAdapter(BaseAdapter):
    """Adapter answering from a dict keyed by company name."""

    required_capability = "exa"

    def __init__(self, name, answers, delay=0.0, fail_for=()):
        super().__init__(
            ProviderCapabilities(exa=True),
            httpx.AsyncClient(),
            make_settings(),
        )
        self.name = name
        self.answers = answers
        self.delay = delay
        self.fail_for = set(fail_for)
        self.seen = []

    async def _fetch(self, company_name, known_domain):
        self.seen.append((company_name, known_domain))
        if self.delay:
            await asyncio.sleep(self.delay)
        if company_name in self.fail_for:
            raise RuntimeError(f"{self.name} exploded")
        return PartialCompanyRecord(**self.answers.get(company_name, {}))


class BrokenAdapter(StubAdapter):
    """Violates the never-raise contract by overriding fetch itself."""

    async def fetch(self, company_name, known_domain=None):
        raise RuntimeError("broken subclass")


class TestResolve:
    """Fan-out across names and adapters."""

    @pytest.mark.asyncio
    async def test_one_record_per_name_in_input_order(self):
        """Output order follows input order, not completion order."""
        slow = StubAdapter("exa", {"Acme": {"domain": "acme.com"}}, delay=0.05)
        fast = StubAdapter("llm", {"Globex": {"domain": "globex.com"}})
        records = await FanOutOrchestrator([slow, fast]).resolve(["Acme", "Globex", "Initech"])

        assert [r.company_name for r in records] == ["Acme", "Globex", "Initech"]
        assert [r.status for r in records] == [
            RecordStatus.VERIFIED,
            RecordStatus.VERIFIED,
            RecordStatus.NOT_FOUND,
        ]
        assert records[0].source == "exa"
        assert records[1].source == "llm"
        assert records[2].source == "No data found"

    @pytest.mark.asyncio
    async def test_failing_adapter_does_not_spoil_the_others(self):
        """One adapter raising leaves the others' data intact."""
        ok = StubAdapter("exa", {"Acme": {"domain": "acme.com"}})
        bad = StubAdapter("apollo", {"Acme": {"revenue": "$1B"}}, fail_for={"Acme"})
        [record] = await FanOutOrchestrator([ok, bad]).resolve(["Acme"])

        assert record.domain == "acme.com"
        assert record.revenue == ""
        assert record.source == "exa"

    @pytest.mark.asyncio
    async def test_contract_breaking_adapter_still_yields_a_record(self):
        """Even an adapter that breaks the no-raise contract cannot lose a record."""
        ok = StubAdapter("exa", {"Acme": {"geography": "Berlin"}})
        broken = BrokenAdapter("apollo", {})
        [record] = await FanOutOrchestrator([ok, broken]).resolve(["Acme"])

        assert record.geography == "Berlin"
        assert record.source == "exa"

    @pytest.mark.asyncio
    async def test_names_and_adapters_run_concurrently(self):
        """Ten names x two adapters sleeping 0.1s settle in well under 2s."""
        adapters = [StubAdapter("exa", {}, delay=0.1), StubAdapter("llm", {}, delay=0.1)]
        names = [f"Company {i}" for i in range(10)]

        loop = asyncio.get_running_loop()
        started = loop.time()
        records = await FanOutOrchestrator(adapters).resolve(names)
        elapsed = loop.time() - started

        assert len(records) == 10
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_domain_shaped_name_is_passed_as_known_domain(self):
        """A domain-shaped name is looked up by display name with the domain known."""
        adapter = StubAdapter("apollo", {"Acme Robotics": {"domain": "acme-robotics.com"}})
        [record] = await FanOutOrchestrator([adapter]).resolve(["acme-robotics.com"])

        assert adapter.seen == [("Acme Robotics", "acme-robotics.com")]
        assert record.company_name == "acme-robotics.com"
        assert record.status == RecordStatus.VERIFIED

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await FanOutOrchestrator([StubAdapter("exa", {})]).resolve([]) == []

"""
End-to-end tests for pipeline.py with mocked transports.
"""
import pytest

from nexsearch.core.config import ProviderCapabilities
from nexsearch.core.errors import InvalidQueryError
from nexsearch.schemas.search import CompanyResponse, GeneralResponse, RecordStatus
from nexsearch.services.intent import GENERAL_UNAVAILABLE_TEXT
from nexsearch.services.pipeline import build_pipeline

from tests.fixtures.search_fixtures import (
    APOLLO_PEOPLE_RESPONSE,
    LLM_PROFILE_JSON,
    make_http_client,
    make_llm,
)


class TestLiteralListPath:
    """Literal name lists go to the full fan-out."""

    @pytest.mark.asyncio
    async def test_two_names_two_records_in_order(self, bare_settings):
        """Bare settings still return one record per name, in order."""
        pipeline = build_pipeline(bare_settings, make_http_client({}), make_llm(configured=False))
        result = await pipeline.search("Acme Corp\nGlobex Inc")

        assert isinstance(result, CompanyResponse)
        assert result.total_companies == 2
        assert result.processed_companies == 2
        assert [r.company_name for r in result.results] == ["Acme Corp", "Globex Inc"]

    @pytest.mark.asyncio
    async def test_every_adapter_failing_yields_not_found(self, settings):
        """All providers answer 500 and the model says nothing: the record survives empty."""
        calls = []
        client = make_http_client({"/search": (500, {}), "/enrich": (500, {})}, calls)
        pipeline = build_pipeline(settings, client, make_llm([]))

        result = await pipeline.search("Ghost Company\nPhantom Ltd")

        assert [r.company_name for r in result.results] == ["Ghost Company", "Phantom Ltd"]
        for record in result.results:
            assert record.domain == ""
            assert record.status == RecordStatus.NOT_FOUND
            assert record.source == "No data found"
        assert calls, "adapters were expected to call their providers"

    @pytest.mark.asyncio
    async def test_company_cap(self, bare_settings):
        """Names beyond MAX_COMPANIES are counted but not processed."""
        capped = bare_settings.model_copy(update={"MAX_COMPANIES": 2})
        pipeline = build_pipeline(capped, make_http_client({}), make_llm(configured=False))
        result = await pipeline.search("A Co\nB Co\nC Co")

        assert result.total_companies == 3
        assert result.processed_companies == 2
        assert [r.company_name for r in result.results] == ["A Co", "B Co"]

    @pytest.mark.asyncio
    async def test_pagination(self, bare_settings):
        """A page request slices the records and reports positions."""
        pipeline = build_pipeline(bare_settings, make_http_client({}), make_llm(configured=False))
        query = "\n".join(f"Company {i}" for i in range(1, 6))
        result = await pipeline.search(query, page=2, per_page=2)

        assert [r.company_name for r in result.results] == ["Company 3", "Company 4"]
        assert result.processed_companies == 5
        assert result.pagination.total_pages == 3
        assert (result.pagination.start, result.pagination.end) == (3, 4)


class TestClassifiedPaths:
    """Queries that go through classification."""

    @pytest.mark.asyncio
    async def test_general_question(self, settings):
        """General intent returns the model's answer."""
        llm = make_llm(["general", "Agents, small models and on-device inference."])
        pipeline = build_pipeline(settings, make_http_client({}), llm)
        result = await pipeline.search("What are the latest AI trends?")

        assert isinstance(result, GeneralResponse)
        assert result.text == "Agents, small models and on-device inference."
        assert result.source == "system"

    @pytest.mark.asyncio
    async def test_general_question_without_any_model(self, bare_settings):
        """No model at all: the fixed notice, still a general response."""
        pipeline = build_pipeline(bare_settings, make_http_client({}), make_llm(configured=False))
        result = await pipeline.search("What are the latest AI trends?")

        assert isinstance(result, GeneralResponse)
        assert result.text == GENERAL_UNAVAILABLE_TEXT
        assert result.source == "system"

    @pytest.mark.asyncio
    async def test_company_intent_uses_the_single_provider_path(self, settings):
        """Extracted names only go to the LLM completion adapter."""
        calls = []
        llm = make_llm(["company", '["Stripe"]', LLM_PROFILE_JSON])
        pipeline = build_pipeline(settings, make_http_client({}, calls), llm)

        result = await pipeline.search("tell me about the payments company Stripe")

        assert isinstance(result, CompanyResponse)
        [record] = result.results
        assert record.company_name == "Stripe"
        assert record.domain == "stripe.com"
        assert record.source == "llm"
        assert record.status == RecordStatus.VERIFIED
        assert calls == []

    @pytest.mark.asyncio
    async def test_person_intent_gets_a_general_answer(self, settings):
        """Person intent in the main search gets a text answer."""
        llm = make_llm(["person", "Patrick Collison is the CEO of Stripe."])
        pipeline = build_pipeline(settings, make_http_client({}), llm)
        result = await pipeline.search("who is the CEO of Stripe")

        assert isinstance(result, GeneralResponse)

    @pytest.mark.asyncio
    async def test_blank_query_is_rejected(self, bare_settings):
        """Whitespace-only queries are rejected."""
        pipeline = build_pipeline(bare_settings, make_http_client({}), make_llm(configured=False))
        with pytest.raises(InvalidQueryError):
            await pipeline.search("   ")


class TestContactsPath:
    """Contact search and status."""

    @pytest.mark.asyncio
    async def test_person_response(self, settings):
        """Discovery without a verifier yields medium confidence."""
        pipeline = build_pipeline(
            settings,
            make_http_client({"/mixed_people/search": APOLLO_PEOPLE_RESPONSE}),
            make_llm(),
            capabilities=ProviderCapabilities(apollo=True),
        )
        result = await pipeline.find_contacts("Acme", "acme.com")

        assert result.type == "person"
        assert result.results[0].email == "jane@acme.com"
        assert result.confidence.value == "medium"

    def test_status_lists_providers(self, settings, capabilities):
        """Status reports providers and adapter order."""
        pipeline = build_pipeline(settings, make_http_client({}), make_llm(), capabilities)
        status = pipeline.status()
        assert status["providers"]["exa"] is True
        assert status["providers"]["openrouter"] is False
        assert status["adapters"] == ["exa", "llm", "apollo", "company_enrich"]

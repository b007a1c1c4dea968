from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Union

import httpx

from ..core.config import ProviderCapabilities, Settings
from ..core.errors import InvalidQueryError
from ..core.logging import sanitize_for_log
from ..schemas.search import (
    CompanyResponse,
    GeneralResponse,
    PersonResponse,
    SearchIntent,
)
from .adapters import ApolloAdapter, CompanyEnrichAdapter, LLMCompletionAdapter, build_adapters
from .contacts import ContactResolver, overall_confidence
from .export import paginate
from .intent import QueryClassifier, detect_literal_list
from .llm import LLMService
from .orchestrator import FanOutOrchestrator

logger = logging.getLogger(__name__)

SearchResult = Union[GeneralResponse, CompanyResponse, PersonResponse]


class SearchPipeline:
    """
    One request, one response shape.

    - Literal name list: full fan-out over every adapter.
    - Company intent with extracted names: fan-out over the LLM completion
      adapter only.
    - Anything else: a single free-text answer.
    """

    def __init__(
        self,
        settings: Settings,
        capabilities: ProviderCapabilities,
        classifier: QueryClassifier,
        orchestrator: FanOutOrchestrator,
        fast_orchestrator: FanOutOrchestrator,
        contacts: ContactResolver,
    ) -> None:
        self.settings = settings
        self.capabilities = capabilities
        self.classifier = classifier
        self.orchestrator = orchestrator
        self.fast_orchestrator = fast_orchestrator
        self.contacts = contacts

    async def search(
        self,
        query: str,
        *,
        page: Optional[int] = None,
        per_page: int = 10,
        request_id: Optional[str] = None,
    ) -> SearchResult:
        if not query or not query.strip():
            raise InvalidQueryError("query must not be empty")

        log_extra = {"request_id": request_id}
        logger.info("Search received: %s", sanitize_for_log(query), extra=log_extra)

        names = detect_literal_list(query)
        if names:
            logger.info(
                "Literal list of %d names", len(names), extra={**log_extra, "step": "literal_list"}
            )
            return await self._company_response(
                names, self.orchestrator, page=page, per_page=per_page, request_id=request_id
            )

        classified = await self.classifier.classify(query)
        logger.info(
            "Classified as %s (%.2f)",
            classified.search_intent.value,
            classified.confidence_score,
            extra={**log_extra, "step": "classify"},
        )

        if classified.search_intent == SearchIntent.COMPANY:
            names = await self.classifier.extract_company_names(query)
            if names:
                return await self._company_response(
                    names,
                    self.fast_orchestrator,
                    page=page,
                    per_page=per_page,
                    request_id=request_id,
                )

        text = await self.classifier.answer_general(classified.enhanced_query)
        return GeneralResponse(text=text)

    async def _company_response(
        self,
        names: Sequence[str],
        orchestrator: FanOutOrchestrator,
        *,
        page: Optional[int],
        per_page: int,
        request_id: Optional[str],
    ) -> CompanyResponse:
        capped = list(names[: self.settings.MAX_COMPANIES])
        if len(capped) < len(names):
            logger.warning(
                "Processing %d of %d companies",
                len(capped),
                len(names),
                extra={"request_id": request_id},
            )

        records = await orchestrator.resolve(capped, request_id=request_id)

        if page is None:
            return CompanyResponse(
                results=records,
                total_companies=len(names),
                processed_companies=len(records),
            )

        sliced = paginate(records, page, per_page)
        return CompanyResponse(
            results=sliced.items,
            total_companies=len(names),
            processed_companies=len(records),
            pagination=sliced.meta,
        )

    async def find_contacts(
        self, company_name: str, domain: str, request_id: Optional[str] = None
    ) -> PersonResponse:
        contacts = await self.contacts.find_contacts(company_name, domain, request_id=request_id)
        return PersonResponse(results=contacts, confidence=overall_confidence(contacts))

    def status(self) -> Dict[str, Any]:
        return {
            "env": self.settings.ENV,
            "providers": self.capabilities.as_dict(),
            "adapters": self.orchestrator.adapter_names,
        }


def build_pipeline(
    settings: Settings,
    http_client: httpx.AsyncClient,
    llm: LLMService,
    capabilities: Optional[ProviderCapabilities] = None,
) -> SearchPipeline:
    capabilities = capabilities or ProviderCapabilities.from_settings(settings)
    adapters = build_adapters(settings, capabilities, http_client, llm)

    apollo: ApolloAdapter = adapters[ApolloAdapter.name]  # type: ignore[assignment]
    company_enrich: CompanyEnrichAdapter = adapters[CompanyEnrichAdapter.name]  # type: ignore[assignment]

    return SearchPipeline(
        settings=settings,
        capabilities=capabilities,
        classifier=QueryClassifier(llm),
        orchestrator=FanOutOrchestrator(list(adapters.values())),
        fast_orchestrator=FanOutOrchestrator([adapters[LLMCompletionAdapter.name]]),
        contacts=ContactResolver(apollo, company_enrich, settings),
    )

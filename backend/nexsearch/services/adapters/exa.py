# backend/nexsearch/services/adapters/exa.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ...schemas.providers import ExaResult, ExaSearchResponse, LLMExtractedFacts
from ...schemas.search import PartialCompanyRecord
from ..llm import parse_json_object
from ..validators import (
    check_domain_reachable,
    format_employees,
    format_revenue,
    is_valid_domain_format,
    normalize_domain,
)
from .base import BaseAdapter, sparse_partial

logger = logging.getLogger(__name__)

# Social / reference sites that are never a company's own website
EXCLUDED_DOMAINS = [
    "linkedin.com",
    "crunchbase.com",
    "pitchbook.com",
    "bloomberg.com",
    "wikipedia.org",
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "youtube.com",
    "glassdoor.com",
    "ycombinator.com",
]

MAX_EXTRACTION_HITS = 3
MAX_EXTRACTION_CHARS = 6000

EXTRACTION_PROMPT = """You extract facts about the company "{company}" from web search results.
Return a JSON object that may contain only these keys:
- "geography": headquarters location (city, region, country)
- "revenue": annual revenue as written in the text
- "employees": employee count or range
- "linkedinUrl": the company's LinkedIn page URL
Include a key ONLY if its value is stated explicitly in the text below. Do not guess.
Return {{}} if nothing is stated.

Search results:
{text}"""


class ExaAdapter(BaseAdapter):
    """
    Semantic-search adapter.

    - Keyword search for the company's official site, excluding social and
      reference domains.
    - The first hit's host becomes the candidate domain (reachability-checked).
    - When an LLM is configured, the top hits' text is handed to an extraction
      prompt that fills geography / revenue / employees / LinkedIn, and only
      keys present in the returned JSON are accepted.
    """

    name = "exa"
    required_capability = "exa"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["x-api-key"] = (self.settings.EXA_API_KEY or "").strip()
        return headers

    def _build_search_payload(self, company_name: str, known_domain: Optional[str]) -> Dict[str, Any]:
        query = f"{company_name} company official website"
        if known_domain:
            query = f"{query} {known_domain}"
        return {
            "query": query,
            "numResults": self.settings.EXA_NUM_RESULTS,
            "type": "keyword",
            "excludeDomains": list(EXCLUDED_DOMAINS),
            "contents": {"text": {"maxCharacters": 2000}},
        }

    async def _fetch(
        self, company_name: str, known_domain: Optional[str]
    ) -> PartialCompanyRecord:
        data = await self._post_json(
            f"{self.settings.EXA_BASE_URL.rstrip('/')}/search",
            self._build_search_payload(company_name, known_domain),
        )
        parsed = ExaSearchResponse.model_validate(data)
        hits = [r for r in parsed.results if r.url and not _is_excluded(r.url)]
        if not hits:
            return PartialCompanyRecord()

        domain = await self._candidate_domain(hits[0].url)
        facts = await self._extract_facts(company_name, hits[:MAX_EXTRACTION_HITS])

        return sparse_partial(
            domain=domain,
            geography=facts.geography if facts else None,
            revenue=format_revenue(facts.revenue) if facts else None,
            employees=format_employees(facts.employees) if facts else None,
            linkedin_url=await self._linkedin(facts.linkedin_url) if facts else None,
        )

    async def _candidate_domain(self, url: Optional[str]) -> Optional[str]:
        domain = normalize_domain(url)
        if not domain:
            return None
        if self.settings.VERIFY_DOMAINS:
            ok = await check_domain_reachable(
                self.http, domain, timeout=self.settings.PROBE_TIMEOUT_SECONDS
            )
        else:
            ok = is_valid_domain_format(domain)
        if not ok:
            logger.info("Discarding unreachable domain %s", domain, extra={"adapter": self.name})
            return None
        return domain

    async def _extract_facts(
        self, company_name: str, hits: List[ExaResult]
    ) -> Optional[LLMExtractedFacts]:
        if self.llm is None or not self.llm.is_configured:
            return None

        text = "\n\n".join(
            f"{h.title or ''}\n{h.url}\n{h.text or h.snippet or ''}".strip() for h in hits
        )[:MAX_EXTRACTION_CHARS]
        if not text.strip():
            return None

        content = await self.llm.complete(
            [
                {
                    "role": "user",
                    "content": EXTRACTION_PROMPT.format(company=company_name, text=text),
                }
            ],
            max_tokens=300,
        )
        data = parse_json_object(content)
        if not data:
            return None
        try:
            return LLMExtractedFacts.model_validate(data)
        except ValidationError as e:
            # The resolved domain stands on its own
            logger.info(
                "Discarding malformed extraction for %s: %s",
                company_name,
                e,
                extra={"adapter": self.name},
            )
            return None


def _is_excluded(url: str) -> bool:
    host = normalize_domain(url) or ""
    return any(host == d or host.endswith("." + d) for d in EXCLUDED_DOMAINS)

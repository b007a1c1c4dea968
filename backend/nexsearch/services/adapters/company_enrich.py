from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx
from pydantic import ValidationError

from ...core.errors import ProviderError
from ...schemas.providers import (
    CompanyEnrichResponse,
    CompanySearchResponse,
    EnrichedCompany,
    PersonEnrichResponse,
)
from ...schemas.search import PartialCompanyRecord
from ..validators import format_employees, format_revenue, is_valid_domain_format, normalize_domain
from .base import BaseAdapter, select_match, sparse_partial

logger = logging.getLogger(__name__)


class CompanyEnrichAdapter(BaseAdapter):
    """
    Company / people enrichment service.

    Same lookup order as Apollo (enrich by domain, then search by name), plus
    `verify_person`, the second-pass check used by contact resolution.
    """

    name = "company_enrich"
    required_capability = "company_enrich"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {(self.settings.COMPANY_ENRICH_API_KEY or '').strip()}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.settings.COMPANY_ENRICH_BASE_URL.rstrip('/')}/{path}"

    async def _fetch(
        self, company_name: str, known_domain: Optional[str]
    ) -> PartialCompanyRecord:
        company: Optional[EnrichedCompany] = None
        if known_domain:
            company = await self._enrich_company(company_name, known_domain)
        if company is None:
            company = await self._search_company(company_name, known_domain)
        if company is None:
            return PartialCompanyRecord()

        domain = normalize_domain(company.domain)
        return sparse_partial(
            company_name=company.name,
            domain=domain if is_valid_domain_format(domain) else None,
            geography=company.headquarters_location,
            revenue=format_revenue(company.annual_revenue),
            employees=format_employees(company.employee_count),
            linkedin_url=await self._linkedin(company.linkedin_url),
        )

    async def _enrich_company(self, company_name: str, domain: str) -> Optional[EnrichedCompany]:
        try:
            data = await self._post_json(
                self._url("companies/enrich"),
                {
                    "company_name": company_name,
                    "domain": normalize_domain(domain),
                    "enrich_level": "company",
                },
            )
            company = CompanyEnrichResponse.model_validate(data).company
        except (ProviderError, httpx.HTTPError, ValidationError, ValueError) as e:
            logger.info(
                "CompanyEnrich enrich failed for %s: %s", domain, e, extra={"adapter": self.name}
            )
            return None

        if company is None or not (company.domain or company.name):
            return None
        return company

    async def _search_company(
        self, company_name: str, known_domain: Optional[str]
    ) -> Optional[EnrichedCompany]:
        data = await self._post_json(
            self._url("companies/search"),
            {"company_name": company_name, "enrich_level": "company"},
        )
        companies = CompanySearchResponse.model_validate(data).companies
        return select_match(companies, known_domain, lambda c: c.domain)

    async def verify_person(
        self,
        *,
        full_name: str,
        email: str,
        company_name: str,
        domain: str,
    ) -> Optional[float]:
        """
        Confidence score in [0, 1] for "this person holds this mailbox at this
        company", or None when the verifier is unavailable or has no opinion.
        """
        if not self.enabled:
            return None

        try:
            data = await self._post_json(
                self._url("people/verify"),
                {
                    "company_name": company_name,
                    "domain": normalize_domain(domain),
                    "email": email,
                    "full_name": full_name,
                    "enrich_level": "person",
                },
            )
            person = PersonEnrichResponse.model_validate(data).person
        except (ProviderError, httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(
                "CompanyEnrich verification failed for %s: %s",
                email,
                e,
                extra={"adapter": self.name},
            )
            return None

        if person is None or person.confidence_score is None:
            return None
        score = person.confidence_score
        # Some plans report 0-100 instead of 0-1
        if score > 1:
            score = score / 100.0
        return max(0.0, min(1.0, score))

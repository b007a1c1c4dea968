# backend/nexsearch/services/adapters/apollo.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from ...core.errors import ProviderError
from ...schemas.providers import (
    ApolloEnrichResponse,
    ApolloOrganization,
    ApolloPeopleResponse,
    ApolloPerson,
    ApolloSearchResponse,
)
from ...schemas.search import PartialCompanyRecord
from ..validators import format_employees, format_revenue, is_valid_domain_format, normalize_domain
from .base import BaseAdapter, select_match, sparse_partial

logger = logging.getLogger(__name__)


class ApolloAdapter(BaseAdapter):
    """
    Apollo.io firmographics and people discovery.

    Company lookup:
    - organizations/enrich by domain when the domain is already known (exact data);
    - otherwise, or when enrich yields nothing, mixed_companies/search by name,
      preferring the organization whose domain matches the known one.

    People discovery (`search_people`) feeds contact resolution.
    """

    name = "apollo"
    required_capability = "apollo"

    search_per_page = 10
    people_per_page = 25

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["X-Api-Key"] = (self.settings.APOLLO_API_KEY or "").strip()
        headers["Cache-Control"] = "no-cache"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.settings.APOLLO_BASE_URL.rstrip('/')}/{path}"

    async def _fetch(
        self, company_name: str, known_domain: Optional[str]
    ) -> PartialCompanyRecord:
        org: Optional[ApolloOrganization] = None
        if known_domain:
            org = await self._enrich_organization(known_domain)
        if org is None:
            org = await self._search_organization(company_name, known_domain)
        if org is None:
            return PartialCompanyRecord()

        domain = normalize_domain(org.domain)
        return sparse_partial(
            company_name=org.name,
            domain=domain if is_valid_domain_format(domain) else None,
            geography=org.geography,
            revenue=format_revenue(org.annual_revenue),
            employees=format_employees(org.employee_count),
            linkedin_url=await self._linkedin(org.linkedin_url),
        )

    async def _enrich_organization(self, domain: str) -> Optional[ApolloOrganization]:
        try:
            data = await self._post_json(
                self._url("organizations/enrich"), {"domain": normalize_domain(domain)}
            )
            org = ApolloEnrichResponse.model_validate(data).organization
        except (ProviderError, httpx.HTTPError, ValidationError, ValueError) as e:
            # Fall through to the name search
            logger.info("Apollo enrich failed for %s: %s", domain, e, extra={"adapter": self.name})
            return None

        if org is None or not (org.domain or org.name):
            return None
        return org

    async def _search_organization(
        self, company_name: str, known_domain: Optional[str]
    ) -> Optional[ApolloOrganization]:
        data = await self._post_json(
            self._url("mixed_companies/search"),
            {
                "q_organization_name": company_name,
                "page": 1,
                "per_page": self.search_per_page,
            },
        )
        orgs = ApolloSearchResponse.model_validate(data).organizations
        return select_match(orgs, known_domain, lambda o: o.domain)

    async def search_people(self, domain: str) -> List[ApolloPerson]:
        """
        People currently or formerly associated with the domain.

        Never raises; a disabled adapter or a failed call returns [].
        """
        if not self.enabled:
            return []

        target = normalize_domain(domain)
        if not target:
            return []

        try:
            data = await self._post_json(
                self._url("mixed_people/search"),
                {
                    "q_organization_domains": target,
                    "page": 1,
                    "per_page": self.people_per_page,
                },
            )
            people = ApolloPeopleResponse.model_validate(data).people
        except (ProviderError, httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(
                "Apollo people search failed for %s: %s",
                target,
                e,
                extra={"adapter": self.name},
            )
            return []

        logger.info(
            "Apollo returned %d people for %s",
            len(people),
            target,
            extra={"adapter": self.name},
        )
        return people

from __future__ import annotations

from typing import Optional

from ...core.errors import ProviderError
from ...schemas.providers import LLMCompanyProfile
from ...schemas.search import PartialCompanyRecord
from ..llm import parse_json_object
from ..validators import format_employees, format_revenue, is_valid_domain_format, normalize_domain
from .base import BaseAdapter, sparse_partial

PROFILE_PROMPT = """Return a JSON object describing the company "{company}"{hint}.
Use exactly these keys, all strings:
"companyName", "domain", "geography", "revenue", "employees", "linkedinUrl".
- domain: the official website host, e.g. "acme.com"
- geography: headquarters city and country
- revenue: latest annual revenue, e.g. "$1.2B"
- employees: approximate employee count or range
- linkedinUrl: the company page, e.g. "https://www.linkedin.com/company/acme"
Use an empty string for anything you do not know. Never use null. Return only the JSON object."""


class LLMCompletionAdapter(BaseAdapter):
    """Asks a general-purpose completion model for a fixed-schema company profile."""

    name = "llm"
    required_capability = "llm"

    async def _fetch(
        self, company_name: str, known_domain: Optional[str]
    ) -> PartialCompanyRecord:
        if self.llm is None:
            raise ProviderError(self.name, "no LLM service")

        hint = f" (website: {known_domain})" if known_domain else ""
        content = await self.llm.complete(
            [
                {"role": "system", "content": "You are a precise company data assistant."},
                {"role": "user", "content": PROFILE_PROMPT.format(company=company_name, hint=hint)},
            ],
            max_tokens=400,
        )
        if content is None:
            raise ProviderError(self.name, "no completion")

        data = parse_json_object(content)
        if not data:
            raise ProviderError(self.name, "completion was not a JSON object")
        profile = LLMCompanyProfile.model_validate(data)

        domain = normalize_domain(profile.domain)
        return sparse_partial(
            company_name=profile.company_name,
            domain=domain if is_valid_domain_format(domain) else None,
            geography=profile.geography,
            revenue=format_revenue(profile.revenue),
            employees=format_employees(profile.employees),
            linkedin_url=await self._linkedin(profile.linkedin_url),
        )

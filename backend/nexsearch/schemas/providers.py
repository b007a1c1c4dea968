# backend/nexsearch/schemas/providers.py
"""
Typed views of the provider payloads we consume.

Adapters validate raw JSON into these models immediately after the HTTP call
and read only from the models afterwards. Key names vary across provider API
versions, so the models accept the documented alternatives via AliasChoices
and ignore everything else.
"""
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _stringify(v: Any) -> Any:
    # Providers mix numbers and strings for the same field (e.g. revenue, headcount)
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


# ---------------------------------------------------------------------------
# Exa (semantic search)
# ---------------------------------------------------------------------------

class ExaResult(ProviderModel):
    provider: Literal["exa"] = "exa"
    title: str | None = None
    url: str | None = None
    snippet: str | None = None
    text: str | None = None
    score: float | None = None


class ExaSearchResponse(ProviderModel):
    provider: Literal["exa"] = "exa"
    results: list[ExaResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Apollo (enrichment service A)
# ---------------------------------------------------------------------------

class ApolloOrganization(ProviderModel):
    provider: Literal["apollo"] = "apollo"
    name: str | None = None
    domain: str | None = Field(
        default=None,
        validation_alias=AliasChoices("domain", "primary_domain", "website_url"),
    )
    location: str | None = Field(
        default=None,
        validation_alias=AliasChoices("location", "raw_address"),
    )
    city: str | None = None
    state: str | None = None
    country: str | None = None
    annual_revenue: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "annual_revenue", "annual_revenue_printed", "organization_revenue"
        ),
    )
    employee_count: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "employee_count", "estimated_num_employees", "num_employees"
        ),
    )
    linkedin_url: str | None = None

    @field_validator("annual_revenue", "employee_count", mode="before")
    @classmethod
    def _coerce_numbers(cls, v: Any) -> Any:
        return _stringify(v)

    @property
    def geography(self) -> str | None:
        if self.location:
            return self.location
        parts = [p for p in (self.city, self.state, self.country) if p]
        return ", ".join(parts) or None


class ApolloEnrichResponse(ProviderModel):
    provider: Literal["apollo"] = "apollo"
    organization: ApolloOrganization | None = None


class ApolloSearchResponse(ProviderModel):
    provider: Literal["apollo"] = "apollo"
    organizations: list[ApolloOrganization] = Field(
        default_factory=list,
        validation_alias=AliasChoices("organizations", "accounts", "companies"),
    )


class ApolloEmployment(ProviderModel):
    current: bool = False
    organization_name: str | None = None
    title: str | None = None


class ApolloPerson(ProviderModel):
    provider: Literal["apollo"] = "apollo"
    first_name: str | None = None
    last_name: str | None = None
    name: str | None = None
    title: str | None = None
    email: str | None = None
    email_status: str | None = None
    linkedin_url: str | None = None
    employment_history: list[ApolloEmployment] = Field(default_factory=list)

    @property
    def is_current(self) -> bool:
        return any(job.current for job in self.employment_history)


class ApolloPeopleResponse(ProviderModel):
    provider: Literal["apollo"] = "apollo"
    people: list[ApolloPerson] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# CompanyEnrich (enrichment service B)
# ---------------------------------------------------------------------------

class EnrichedCompany(ProviderModel):
    provider: Literal["company_enrich"] = "company_enrich"
    name: str | None = Field(
        default=None, validation_alias=AliasChoices("name", "company_name")
    )
    domain: str | None = Field(
        default=None, validation_alias=AliasChoices("domain", "website")
    )
    headquarters_location: str | None = Field(
        default=None,
        validation_alias=AliasChoices("headquarters_location", "location"),
    )
    annual_revenue: str | None = None
    employee_count: str | None = Field(
        default=None, validation_alias=AliasChoices("employee_count", "size")
    )
    linkedin_url: str | None = None

    @field_validator("annual_revenue", "employee_count", mode="before")
    @classmethod
    def _coerce_numbers(cls, v: Any) -> Any:
        return _stringify(v)


class CompanyEnrichResponse(ProviderModel):
    provider: Literal["company_enrich"] = "company_enrich"
    company: EnrichedCompany | None = None


class CompanySearchResponse(ProviderModel):
    provider: Literal["company_enrich"] = "company_enrich"
    companies: list[EnrichedCompany] = Field(
        default_factory=list,
        validation_alias=AliasChoices("companies", "results"),
    )


class VerifiedPerson(ProviderModel):
    email: str | None = None
    confidence_score: float | None = Field(
        default=None,
        validation_alias=AliasChoices("confidence_score", "score", "email_confidence"),
    )


class PersonEnrichResponse(ProviderModel):
    provider: Literal["company_enrich"] = "company_enrich"
    person: VerifiedPerson | None = None


# ---------------------------------------------------------------------------
# LLM-produced JSON
# ---------------------------------------------------------------------------

class LLMCompanyProfile(ProviderModel):
    """Fixed schema we ask the completion model to emit for one company."""

    company_name: str = Field(
        default="", validation_alias=AliasChoices("companyName", "company_name")
    )
    domain: str = ""
    geography: str = ""
    revenue: str = ""
    employees: str = ""
    linkedin_url: str = Field(
        default="", validation_alias=AliasChoices("linkedinUrl", "linkedin_url")
    )

    @field_validator("*", mode="before")
    @classmethod
    def _never_null(cls, v: Any) -> Any:
        if v is None:
            return ""
        return _stringify(v)


class LLMExtractedFacts(ProviderModel):
    """Fields the extraction step may fill from search-result text; absent means unknown."""

    geography: str | None = None
    revenue: str | None = None
    employees: str | None = None
    linkedin_url: str | None = Field(
        default=None, validation_alias=AliasChoices("linkedinUrl", "linkedin_url")
    )

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_numbers(cls, v: Any) -> Any:
        return _stringify(v)

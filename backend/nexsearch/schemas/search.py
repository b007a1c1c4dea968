# backend/nexsearch/schemas/search.py
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_QUERY_LEN = 4000
MAX_COMPANY_NAME_LEN = 200
MAX_PER_PAGE = 100


class CamelModel(BaseModel):
    """Base for everything that crosses the HTTP boundary (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordStatus(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"


class SearchIntent(str, Enum):
    COMPANY = "company"
    PERSON = "person"
    GENERAL = "general"


class ContactConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class PartialCompanyRecord(CamelModel):
    """
    What a single adapter knows about one company.

    Every field is optional; `source` is stamped with the adapter name at the
    adapter boundary so the merge step can attribute contributions.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    company_name: str | None = None
    domain: str | None = None
    geography: str | None = None
    revenue: str | None = None
    employees: str | None = None
    linkedin_url: str | None = None
    source: str | None = None


class CompanyRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    company_name: str
    domain: str = ""
    geography: str = ""
    revenue: str = ""
    employees: str = ""
    linkedin_url: str = ""
    source: str = ""
    status: RecordStatus = RecordStatus.NOT_FOUND


class ContactPerson(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    title: str
    email: str
    linkedin_url: str = ""
    confidence: ContactConfidence = ContactConfidence.MEDIUM
    verification_source: str = ""


class ClassifiedQuery(CamelModel):
    enhanced_query: str
    search_intent: SearchIntent
    confidence_score: float = Field(ge=0.0, le=1.0)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class SearchRequest(CamelModel):
    query: str
    page: int | None = Field(default=None, ge=1)
    per_page: int = Field(default=10, ge=1, le=MAX_PER_PAGE)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be empty")
        if len(v) > MAX_QUERY_LEN:
            raise ValueError(
                f"query is too long; maximum length is {MAX_QUERY_LEN} characters"
            )
        return v


class ContactsRequest(CamelModel):
    company_name: str
    domain: str

    @field_validator("company_name", "domain")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        if len(v) > MAX_COMPANY_NAME_LEN:
            raise ValueError(f"must be at most {MAX_COMPANY_NAME_LEN} characters")
        return v


# ---------------------------------------------------------------------------
# Responses (closed union tagged by `type`)
# ---------------------------------------------------------------------------

class Pagination(CamelModel):
    page: int
    per_page: int
    total: int
    total_pages: int
    start: int
    end: int


class GeneralResponse(CamelModel):
    type: Literal["general"] = "general"
    text: str
    source: str = "system"


class CompanyResponse(CamelModel):
    type: Literal["company"] = "company"
    results: list[CompanyRecord]
    total_companies: int
    processed_companies: int
    pagination: Pagination | None = None


class PersonResponse(CamelModel):
    type: Literal["person"] = "person"
    results: list[ContactPerson]
    confidence: ContactConfidence


SearchResponse = Annotated[
    Union[GeneralResponse, CompanyResponse, PersonResponse],
    Field(discriminator="type"),
]


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None

from __future__ import annotations

from typing import List, Optional, Sequence

from ..schemas.search import CompanyRecord, PartialCompanyRecord, RecordStatus
from .validators import EMPTY_SENTINELS, ERROR_SENTINELS, clean_value

MERGED_FIELDS = ("domain", "geography", "revenue", "employees", "linkedin_url")
NO_DATA_SOURCE = "No data found"


def pick_longest(candidates: Sequence[Optional[str]]) -> str:
    """
    Longest surviving value; ties go to the earliest candidate.

    Empty strings, "Not available", "undefined" and provider error tokens
    never survive.
    """
    survivors = [v for v in (clean_value(c) for c in candidates) if v is not None]
    if not survivors:
        return ""
    return max(survivors, key=len)


def is_verified_domain(domain: str) -> bool:
    d = (domain or "").strip()
    return bool(d) and d not in ERROR_SENTINELS and d not in EMPTY_SENTINELS


def merge(company_name: str, partials: Sequence[PartialCompanyRecord]) -> CompanyRecord:
    """
    Combine per-adapter partial records into one CompanyRecord.

    Pure: the output depends only on the arguments, and the partials are
    evaluated in the order given.
    """
    merged = {
        field: pick_longest([getattr(p, field) for p in partials])
        for field in MERGED_FIELDS
    }

    contributors: List[str] = []
    for partial in partials:
        if not partial.source or partial.source in contributors:
            continue
        if any(clean_value(getattr(partial, field)) is not None for field in MERGED_FIELDS):
            contributors.append(partial.source)

    return CompanyRecord(
        company_name=company_name,
        source=", ".join(contributors) if contributors else NO_DATA_SOURCE,
        status=RecordStatus.VERIFIED if is_verified_domain(merged["domain"]) else RecordStatus.NOT_FOUND,
        **merged,
    )

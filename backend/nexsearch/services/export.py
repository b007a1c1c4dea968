from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar, Union

from ..schemas.search import (
    CompanyResponse,
    GeneralResponse,
    Pagination,
    PersonResponse,
)

T = TypeVar("T")

COMPANY_CSV_HEADER = [
    "Company Name",
    "Domain",
    "Geography",
    "Revenue",
    "Employees",
    "LinkedIn",
    "Source",
    "Status",
]
CONTACT_CSV_HEADER = ["Name", "Title", "Email", "LinkedIn", "Confidence", "Verification Source"]


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    meta: Pagination


def paginate(items: Sequence[T], page: int, per_page: int = 10) -> Page[T]:
    """
    1-based page slice; out-of-range pages are clamped to the nearest valid one.

    `start`/`end` are 1-based positions for "Showing start-end of total"
    (both 0 for an empty list).
    """
    per_page = max(1, per_page)
    total = len(items)
    total_pages = max(1, math.ceil(total / per_page))
    page = min(max(1, page), total_pages)

    offset = (page - 1) * per_page
    sliced = list(items[offset : offset + per_page])
    start = offset + 1 if sliced else 0
    end = offset + len(sliced)

    return Page(
        items=sliced,
        meta=Pagination(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
            start=start,
            end=end,
        ),
    )


def to_csv(response: Union[GeneralResponse, CompanyResponse, PersonResponse]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")

    if isinstance(response, CompanyResponse):
        writer.writerow(COMPANY_CSV_HEADER)
        for r in response.results:
            writer.writerow(
                [
                    r.company_name,
                    r.domain,
                    r.geography,
                    r.revenue,
                    r.employees,
                    r.linkedin_url,
                    r.source,
                    r.status.value,
                ]
            )
    elif isinstance(response, PersonResponse):
        writer.writerow(CONTACT_CSV_HEADER)
        for c in response.results:
            writer.writerow(
                [c.name, c.title, c.email, c.linkedin_url, c.confidence.value, c.verification_source]
            )
    else:
        writer.writerow(["Answer"])
        writer.writerow([response.text])

    return buf.getvalue()

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from ..schemas.search import CompanyRecord, PartialCompanyRecord
from .adapters import BaseAdapter
from .intent import split_name_and_domain
from .merge import merge

logger = logging.getLogger(__name__)


class FanOutOrchestrator:
    """
    Resolve company names into merged records.

    - Every name is dispatched at once; per name, every adapter runs at once.
    - Joins wait for everything to settle and tolerate individual failures.
    - One record per input name, in input order, even if every adapter fails.
    """

    def __init__(self, adapters: Sequence[BaseAdapter]) -> None:
        self.adapters = list(adapters)

    @property
    def adapter_names(self) -> List[str]:
        return [a.name for a in self.adapters]

    async def resolve(
        self, company_names: Sequence[str], request_id: Optional[str] = None
    ) -> List[CompanyRecord]:
        outcomes = await asyncio.gather(
            *(self._resolve_one(name, request_id) for name in company_names),
            return_exceptions=True,
        )

        records: List[CompanyRecord] = []
        for name, outcome in zip(company_names, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Resolution failed for %r: %s",
                    name,
                    outcome,
                    extra={"request_id": request_id, "company": name},
                )
                records.append(merge(name, []))
            else:
                records.append(outcome)
        return records

    async def _resolve_one(self, company_name: str, request_id: Optional[str]) -> CompanyRecord:
        lookup_name, known_domain = split_name_and_domain(company_name)

        results = await asyncio.gather(
            *(adapter.fetch(lookup_name, known_domain) for adapter in self.adapters),
            return_exceptions=True,
        )

        partials: List[PartialCompanyRecord] = []
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, BaseException):
                # Adapters never raise; this only guards against a broken subclass
                logger.error(
                    "Adapter '%s' raised for %r: %s",
                    adapter.name,
                    company_name,
                    result,
                    extra={"request_id": request_id, "adapter": adapter.name, "company": company_name},
                )
                partials.append(PartialCompanyRecord(source=adapter.name))
            else:
                partials.append(result)

        record = merge(company_name, partials)
        logger.info(
            "Resolved %r: status=%s source=%s",
            company_name,
            record.status.value,
            record.source,
            extra={"request_id": request_id, "company": company_name},
        )
        return record

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Sequence, TypeVar

import httpx
from pydantic import ValidationError

from ...core.config import ProviderCapabilities, Settings
from ...core.errors import ProviderError
from ...schemas.search import PartialCompanyRecord
from ..llm import LLMService
from ..validators import canonicalize_linkedin_url, clean_value, normalize_domain, verify_linkedin_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that mean "this provider had nothing usable for us"
EXPECTED_FAILURES = (httpx.HTTPError, ProviderError, ValidationError, ValueError)


def sparse_partial(**fields: Any) -> PartialCompanyRecord:
    """Build a partial record from only the fields that carry real data."""
    kept = {k: clean_value(v) for k, v in fields.items()}
    return PartialCompanyRecord(**{k: v for k, v in kept.items() if v is not None})


def select_match(
    items: Sequence[T],
    known_domain: Optional[str],
    domain_of: Callable[[T], Optional[str]],
) -> Optional[T]:
    """
    Pick the item whose normalized domain equals the known domain exactly;
    otherwise (or with no known domain) the top item.
    """
    if not items:
        return None
    target = normalize_domain(known_domain)
    if target:
        for item in items:
            if normalize_domain(domain_of(item)) == target:
                return item
    return items[0]


class BaseAdapter(ABC):
    """
    One provider, one company at a time.

    Subclasses implement `_fetch`; `fetch` is the public contract and never
    raises: a disabled adapter, a transport problem or a malformed payload all
    yield an empty partial stamped with the adapter name.
    """

    name: str
    # Attribute of ProviderCapabilities this adapter cannot work without
    required_capability: str

    def __init__(
        self,
        capabilities: ProviderCapabilities,
        http_client: httpx.AsyncClient,
        settings: Settings,
        llm: Optional[LLMService] = None,
    ) -> None:
        self.capabilities = capabilities
        self.http = http_client
        self.settings = settings
        self.llm = llm

    @property
    def enabled(self) -> bool:
        return self.capabilities.has(self.required_capability)

    async def fetch(
        self, company_name: str, known_domain: Optional[str] = None
    ) -> PartialCompanyRecord:
        empty = PartialCompanyRecord(source=self.name)
        if not self.enabled:
            return empty

        log_extra = {"adapter": self.name, "company": company_name}
        try:
            partial = await self._fetch(company_name, known_domain)
        except EXPECTED_FAILURES as e:
            logger.warning("Adapter '%s' returned no data: %s", self.name, e, extra=log_extra)
            return empty
        except Exception as e:
            logger.exception("Adapter '%s' failed: %s", self.name, e, extra=log_extra)
            return empty

        logger.info("Adapter '%s' completed", self.name, extra=log_extra)
        return partial.model_copy(update={"source": self.name})

    @abstractmethod
    async def _fetch(
        self, company_name: str, known_domain: Optional[str]
    ) -> PartialCompanyRecord:
        ...

    # ------------------------------------------------------------------
    # Helpers shared by the HTTP adapters
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "accept": "application/json",
        }

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        resp = await self.http.post(
            url,
            json=payload,
            headers=self._headers(),
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
        )
        if resp.status_code >= 400:
            raise ProviderError(
                self.name,
                f"{url} returned {resp.status_code}: {resp.text[:200]}",
            )
        return resp.json()

    async def _linkedin(self, raw: Optional[str]) -> Optional[str]:
        if self.settings.VERIFY_LINKEDIN_URLS:
            return await verify_linkedin_url(
                self.http, raw, timeout=self.settings.PROBE_TIMEOUT_SECONDS
            )
        return canonicalize_linkedin_url(raw)

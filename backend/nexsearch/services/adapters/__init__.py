from __future__ import annotations

from typing import Dict, Optional, Type

import httpx

from ...core.config import ProviderCapabilities, Settings
from ..llm import LLMService
from .apollo import ApolloAdapter
from .base import BaseAdapter
from .company_enrich import CompanyEnrichAdapter
from .exa import ExaAdapter
from .llm_completion import LLMCompletionAdapter

# Evaluation order; the merge step breaks ties by this order
ADAPTER_CLASSES: Dict[str, Type[BaseAdapter]] = {
    ExaAdapter.name: ExaAdapter,
    LLMCompletionAdapter.name: LLMCompletionAdapter,
    ApolloAdapter.name: ApolloAdapter,
    CompanyEnrichAdapter.name: CompanyEnrichAdapter,
}


def build_adapters(
    settings: Settings,
    capabilities: ProviderCapabilities,
    http_client: httpx.AsyncClient,
    llm: Optional[LLMService] = None,
) -> Dict[str, BaseAdapter]:
    """
    Instantiate every adapter once, in evaluation order.

    Disabled adapters are kept: they answer with empty partials, which keeps
    the fan-out shape identical whatever credentials are configured.
    """
    return {
        name: cls(capabilities, http_client, settings, llm)
        for name, cls in ADAPTER_CLASSES.items()
    }


__all__ = [
    "ADAPTER_CLASSES",
    "ApolloAdapter",
    "BaseAdapter",
    "CompanyEnrichAdapter",
    "ExaAdapter",
    "LLMCompletionAdapter",
    "build_adapters",
]

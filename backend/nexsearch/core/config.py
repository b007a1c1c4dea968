from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"

    # auth / security
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    # external APIs (all optional: a missing key disables that provider only)
    EXA_API_KEY: str | None = None
    EXA_BASE_URL: str = "https://api.exa.ai"
    EXA_NUM_RESULTS: int = 5

    OPENAI_API_KEY: str | None = None
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"

    APOLLO_API_KEY: str | None = None
    APOLLO_BASE_URL: str = "https://api.apollo.io/api/v1"

    COMPANY_ENRICH_API_KEY: str | None = None
    COMPANY_ENRICH_BASE_URL: str = "https://api.companyenrich.com/v1"

    # llm
    LLM_MODEL: str = "gpt-4o-mini"
    OPENROUTER_MODEL: str = "openai/gpt-4o-mini"
    # Hard cap on concurrent LLM calls per process
    LLM_MAX_CONCURRENCY: int = 4
    LLM_TIMEOUT_SECONDS: float = 30.0

    # http
    HTTP_TIMEOUT_SECONDS: float = 15.0
    PROBE_TIMEOUT_SECONDS: float = 5.0
    VERIFY_DOMAINS: bool = True
    VERIFY_LINKEDIN_URLS: bool = False

    # pipeline limits
    MAX_COMPANIES: int = 50
    CONTACTS_TOP_N: int = 5
    CONTACT_MIN_VERIFICATION_SCORE: float = 0.5

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"
        frozen = True


@dataclass(frozen=True)
class ProviderCapabilities:
    """
    Which collaborators are usable in this process.

    Derived once from Settings and handed to the pipeline at construction time;
    adapters name the capability they need and disable themselves when it is
    missing.
    """

    exa: bool = False
    openai: bool = False
    openrouter: bool = False
    apollo: bool = False
    company_enrich: bool = False

    @property
    def llm(self) -> bool:
        return self.openai or self.openrouter

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderCapabilities":
        def _has(value: str | None) -> bool:
            return bool(value and value.strip())

        return cls(
            exa=_has(settings.EXA_API_KEY),
            openai=_has(settings.OPENAI_API_KEY),
            openrouter=_has(settings.OPENROUTER_API_KEY),
            apollo=_has(settings.APOLLO_API_KEY),
            company_enrich=_has(settings.COMPANY_ENRICH_API_KEY),
        )

    def has(self, capability: str) -> bool:
        return bool(getattr(self, capability, False))

    def as_dict(self) -> dict[str, bool]:
        return {
            "exa": self.exa,
            "openai": self.openai,
            "openrouter": self.openrouter,
            "apollo": self.apollo,
            "company_enrich": self.company_enrich,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()

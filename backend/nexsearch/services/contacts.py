from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional, Sequence

from ..core.config import Settings
from ..schemas.providers import ApolloPerson
from ..schemas.search import ContactConfidence, ContactPerson
from .adapters import ApolloAdapter, CompanyEnrichAdapter
from .validators import (
    canonicalize_linkedin_url,
    is_valid_name_part,
    is_valid_title,
    normalize_domain,
    validate_email,
)

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_SCORE = 0.9

# Checked in order; the first match sets the score. "Vice President" must hit
# the VP rule before the President rule.
SENIORITY_RULES = [
    (re.compile(r"\b(?:ceo|chief executive)\b", re.IGNORECASE), 100),
    (
        re.compile(
            r"\b(?:cto|cfo|coo|chief (?:technology|financial|operating) officer)\b",
            re.IGNORECASE,
        ),
        90,
    ),
    (re.compile(r"\b(?:vp|svp|evp|vice[\s-]president)\b", re.IGNORECASE), 70),
    (re.compile(r"\bpresident\b", re.IGNORECASE), 80),
    (re.compile(r"\bhead\b", re.IGNORECASE), 60),
    (re.compile(r"\bdirector\b", re.IGNORECASE), 50),
]


def seniority_score(title: str | None) -> int:
    for pattern, score in SENIORITY_RULES:
        if title and pattern.search(title):
            return score
    return 0


def rank_by_seniority(contacts: Sequence[ContactPerson]) -> List[ContactPerson]:
    # sorted() is stable, so equal scores keep provider order
    return sorted(contacts, key=lambda c: seniority_score(c.title), reverse=True)


def _name_parts(person: ApolloPerson) -> tuple[str, str]:
    first = (person.first_name or "").strip()
    last = (person.last_name or "").strip()
    if (not first or not last) and person.name:
        tokens = person.name.strip().split(None, 1)
        if len(tokens) == 2:
            first, last = first or tokens[0], last or tokens[1]
    return first, last


def to_candidate(person: ApolloPerson, domain: str, discovered_by: str) -> Optional[ContactPerson]:
    """Apply the validity gate; None when any check fails."""
    if not person.is_current:
        return None

    first, last = _name_parts(person)
    if not (is_valid_name_part(first) and is_valid_name_part(last)):
        return None

    title = (person.title or "").strip()
    if not is_valid_title(title):
        return None

    email = (person.email or "").strip().lower()
    if not validate_email(email, domain):
        return None
    if (person.email_status or "").strip().lower() != "verified":
        return None

    return ContactPerson(
        name=f"{first} {last}",
        title=title,
        email=email,
        linkedin_url=canonicalize_linkedin_url(person.linkedin_url) or "",
        confidence=ContactConfidence.MEDIUM,
        verification_source=discovered_by,
    )


def overall_confidence(contacts: Sequence[ContactPerson]) -> ContactConfidence:
    if any(c.confidence == ContactConfidence.HIGH for c in contacts):
        return ContactConfidence.HIGH
    if contacts:
        return ContactConfidence.MEDIUM
    return ContactConfidence.LOW


class ContactResolver:
    """
    Leadership contacts for one company.

    Apollo discovers candidates, the validity gate filters them, and
    CompanyEnrich verifies the survivors. Candidates that fail verification
    are dropped rather than downgraded.
    """

    def __init__(
        self,
        discovery: ApolloAdapter,
        verifier: CompanyEnrichAdapter,
        settings: Settings,
    ) -> None:
        self.discovery = discovery
        self.verifier = verifier
        self.top_n = max(1, settings.CONTACTS_TOP_N)
        self.min_score = settings.CONTACT_MIN_VERIFICATION_SCORE

    async def find_contacts(
        self,
        company_name: str,
        domain: str,
        request_id: Optional[str] = None,
    ) -> List[ContactPerson]:
        target = normalize_domain(domain)
        if not target:
            return []

        people = await self.discovery.search_people(target)
        candidates = [
            c
            for c in (to_candidate(p, target, self.discovery.name) for p in people)
            if c is not None
        ]
        ranked = rank_by_seniority(candidates)

        # Rank order; each batch is sized to the slots still open
        contacts: List[ContactPerson] = []
        pending = list(ranked)
        while pending and len(contacts) < self.top_n:
            batch = pending[: self.top_n - len(contacts)]
            pending = pending[len(batch) :]
            outcomes = await asyncio.gather(
                *(self._verify(c, company_name, target) for c in batch),
                return_exceptions=True,
            )
            for candidate, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error(
                        "Verification crashed for %s: %s",
                        candidate.email,
                        outcome,
                        extra={"request_id": request_id, "company": company_name},
                    )
                    continue
                if outcome is not None:
                    contacts.append(outcome)

        logger.info(
            "Contacts for %s: %d discovered, %d passed the gate, %d kept",
            target,
            len(people),
            len(candidates),
            len(contacts),
            extra={"request_id": request_id, "company": company_name},
        )
        return contacts

    async def _verify(
        self, candidate: ContactPerson, company_name: str, domain: str
    ) -> Optional[ContactPerson]:
        if not self.verifier.enabled:
            return candidate

        score = await self.verifier.verify_person(
            full_name=candidate.name,
            email=candidate.email,
            company_name=company_name,
            domain=domain,
        )
        if score is None:
            return candidate

        sources = f"{self.discovery.name}, {self.verifier.name}"
        if score > HIGH_CONFIDENCE_SCORE:
            return candidate.model_copy(
                update={"confidence": ContactConfidence.HIGH, "verification_source": sources}
            )
        if score >= self.min_score:
            return candidate.model_copy(
                update={"confidence": ContactConfidence.MEDIUM, "verification_source": sources}
            )
        return None

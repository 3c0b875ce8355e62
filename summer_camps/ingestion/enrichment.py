"""
Attach brochure descriptions to workbook camp records.

Matching strategies, tried in order for each record (first hit wins):

1. catalog code  – exact, case-insensitive
2. name          – exact title, case-insensitive
3. normalized    – title after ``normalize_title``
4. fuzzy         – best Jaccard word overlap above ``fuzzy_match_threshold``

A record matching nothing keeps no description and is counted as unmatched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from summer_camps.ingestion.config import ingest_settings
from summer_camps.ingestion.schemas import CampDescription, CampRecord, MatchMethod, SheetData

logger = logging.getLogger(__name__)

STOPWORDS = ("new", "camp", "workshop")

_SUFFIX_RE = re.compile(r"-sp\b", re.IGNORECASE)  # season suffix, e.g. "Nature-SP"
_AGE_RANGE_RE = re.compile(r"\s*\([^)]*\d[^)]*\)\s*")  # "(7-14yrs)", "(Ages 5-7)"
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")
_STOPWORD_RE = re.compile(r"\b(" + "|".join(STOPWORDS) + r")\b", re.IGNORECASE)


def normalize_title(title: str) -> str:
    """Lowercase title without age ranges, season suffix, punctuation or stopwords."""
    text = title.lower()
    text = _SUFFIX_RE.sub("", text)
    text = _AGE_RANGE_RE.sub(" ", text)
    text = _PUNCT_RE.sub("", text)
    text = _SPACE_RE.sub(" ", text)
    text = _STOPWORD_RE.sub("", text)
    return _SPACE_RE.sub(" ", text).strip()


def _words(title: str) -> set[str]:
    return {w for w in normalize_title(title).split(" ") if len(w) > 2}


def similarity(a: str, b: str) -> float:
    """Jaccard index of the significant words of two titles."""
    words_a, words_b = _words(a), _words(b)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


@dataclass
class EnrichmentStats:
    """Counters for a single enrichment run."""

    descriptions_found: int = 0
    unique_codes: int = 0
    matched: dict[MatchMethod, int] = field(
        default_factory=lambda: {m: 0 for m in MatchMethod}
    )
    unmatched: int = 0
    unmatched_samples: list[tuple[str, str | None]] = field(default_factory=list)

    @property
    def total_matched(self) -> int:
        return sum(self.matched.values())


class DescriptionEnricher:
    """Looks up a description for each ``CampRecord``."""

    def __init__(
        self,
        descriptions: list[CampDescription],
        *,
        threshold: float | None = None,
        sample_size: int | None = None,
    ) -> None:
        self.descriptions = descriptions
        self.threshold = (
            ingest_settings.fuzzy_match_threshold if threshold is None else threshold
        )
        self.sample_size = (
            ingest_settings.unmatched_sample_size if sample_size is None else sample_size
        )

        # Later entries win, as in a plain dict rebuild of the corpus
        self.by_code: dict[str, CampDescription] = {}
        self.by_name: dict[str, CampDescription] = {}
        self.by_normalized_name: dict[str, CampDescription] = {}
        for desc in descriptions:
            for code in desc.codes:
                self.by_code[code] = desc
            self.by_name[desc.name.lower()] = desc
            normalized = normalize_title(desc.name)
            if normalized:
                self.by_normalized_name[normalized] = desc

    def match(self, record: CampRecord) -> tuple[CampDescription, MatchMethod] | None:
        code = (record.catalog_id or "").strip().upper()
        if code and code in self.by_code:
            return self.by_code[code], MatchMethod.CODE

        title = record.title or ""
        if not title:
            return None

        desc = self.by_name.get(title.lower())
        if desc is not None:
            return desc, MatchMethod.NAME

        normalized = normalize_title(title)
        desc = self.by_normalized_name.get(normalized) if normalized else None
        if desc is not None:
            return desc, MatchMethod.NORMALIZED_NAME

        best: CampDescription | None = None
        best_score = self.threshold
        for candidate in self.descriptions:
            score = similarity(title, candidate.name)
            if score > best_score:
                best, best_score = candidate, score
        if best is not None:
            return best, MatchMethod.FUZZY
        return None

    def enrich(self, records: list[CampRecord], stats: EnrichmentStats | None = None) -> EnrichmentStats:
        """Set ``description`` on every record that matches, in place."""
        stats = stats or self.new_stats()
        for record in records:
            found = self.match(record)
            if found is None:
                stats.unmatched += 1
                if len(stats.unmatched_samples) < self.sample_size:
                    stats.unmatched_samples.append((record.title or "", record.catalog_id))
                continue
            desc, method = found
            record.description = desc.description
            stats.matched[method] += 1
        return stats

    def enrich_dataset(self, dataset: dict[str, SheetData]) -> EnrichmentStats:
        stats = self.new_stats()
        for name, sheet in dataset.items():
            if not sheet.camps:
                continue
            self.enrich(sheet.camps, stats)
            logger.debug("Enriched sheet %r (%d camps).", name, len(sheet.camps))

        logger.info(
            "Enrichment: %d by code, %d by name, %d by normalized name, "
            "%d fuzzy, %d unmatched.",
            stats.matched[MatchMethod.CODE],
            stats.matched[MatchMethod.NAME],
            stats.matched[MatchMethod.NORMALIZED_NAME],
            stats.matched[MatchMethod.FUZZY],
            stats.unmatched,
        )
        return stats

    def new_stats(self) -> EnrichmentStats:
        return EnrichmentStats(
            descriptions_found=len(self.descriptions),
            unique_codes=len(self.by_code),
        )

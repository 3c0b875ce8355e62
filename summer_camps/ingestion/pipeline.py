"""
End-to-end orchestration of the camp data pipeline.

Wires together the three independent runs:

- workbook → type inference → geocoding → ``fcpa-camps.json``
- brochure PDF → per-page LLM extraction → combined markdown
- combined markdown + dataset → description matching → enriched dataset

Each run reads and writes flat files only; paths default to ``settings``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from summer_camps.config import settings
from summer_camps.ingestion.enrichment import DescriptionEnricher, EnrichmentStats
from summer_camps.ingestion.geocoding import (
    AddressOverrides,
    GeocodeCache,
    GeocodingResolver,
    NominatimClient,
)
from summer_camps.ingestion.markdown import parse_markdown
from summer_camps.ingestion.schemas import SheetData, dataset_from_json, dataset_to_json
from summer_camps.ingestion.workbook import TypeInferenceIngestor

logger = logging.getLogger(__name__)


@dataclass
class ConversionStats:
    """Counters for a single workbook conversion."""

    sheets: dict[str, int] = field(default_factory=dict)  # sheet → camp count
    geocoded: int = 0
    cache_size: int = 0
    elapsed_seconds: float = 0.0

    @property
    def total_camps(self) -> int:
        return sum(self.sheets.values())


def build_resolver(
    cache_path: Path | None = None,
    overrides_path: Path | None = None,
    client: NominatimClient | None = None,
) -> GeocodingResolver:
    """Resolver backed by the on-disk cache and override table."""
    cache = GeocodeCache.load(cache_path or settings.geocode_cache_path)
    overrides = AddressOverrides.load(overrides_path or settings.address_overrides_path)
    return GeocodingResolver(cache, overrides, client)


def convert_workbook(
    workbook_path: Path,
    *,
    resolver: GeocodingResolver | None = None,
) -> tuple[dict[str, SheetData], ConversionStats]:
    """Ingest every camp sheet of *workbook_path*, geocoding when a resolver is given."""
    t0 = time.time()
    ingestor = TypeInferenceIngestor(resolver)
    try:
        dataset = ingestor.ingest(Path(workbook_path))
    finally:
        if resolver is not None:
            resolver.close()

    stats = ConversionStats(
        sheets={name: len(sheet.camps) for name, sheet in dataset.items()},
        geocoded=sum(
            1 for sheet in dataset.values() for c in sheet.camps if c.coordinates is not None
        ),
        cache_size=len(resolver.cache) if resolver is not None else 0,
    )
    stats.elapsed_seconds = time.time() - t0
    logger.info(
        "Conversion complete: %d sheets, %d camps, %d geocoded in %.1fs.",
        len(stats.sheets), stats.total_camps, stats.geocoded, stats.elapsed_seconds,
    )
    return dataset, stats


def load_dataset(path: Path) -> dict[str, SheetData]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return dataset_from_json(payload)


def dump_dataset(dataset: dict[str, SheetData]) -> str:
    return json.dumps(dataset_to_json(dataset), indent=2, ensure_ascii=False)


def write_dataset(dataset: dict[str, SheetData], path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_dataset(dataset), encoding="utf-8")
    logger.info("Written to %s", path)


def enrich_dataset(
    markdown_path: Path | None = None,
    dataset_path: Path | None = None,
    output_path: Path | None = None,
) -> EnrichmentStats:
    """Match brochure descriptions onto the dataset and write the enriched copy."""
    markdown_path = Path(markdown_path or settings.markdown_path)
    dataset_path = Path(dataset_path or settings.dataset_path)
    output_path = Path(output_path or settings.enriched_dataset_path)

    for required in (markdown_path, dataset_path):
        if not required.exists():
            raise FileNotFoundError(f"Required input does not exist: {required}")

    logger.info("Parsing camp descriptions from %s…", markdown_path)
    descriptions = parse_markdown(markdown_path.read_text(encoding="utf-8"))
    enricher = DescriptionEnricher(descriptions)
    logger.info(
        "Found %d camp descriptions with %d unique codes.",
        len(descriptions), len(enricher.by_code),
    )

    payload = json.loads(dataset_path.read_text(encoding="utf-8"))
    dataset = dataset_from_json(payload)
    stats = enricher.enrich_dataset(dataset)

    # Non-sheet top-level keys pass through untouched
    payload.update(dataset_to_json(dataset))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Written to %s", output_path)
    return stats


def read_dataset_payload(path: Path) -> dict[str, Any] | None:
    """Raw JSON of a dataset file, or ``None`` when it is missing."""
    path = Path(path)
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))

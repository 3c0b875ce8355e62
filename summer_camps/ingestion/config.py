"""
Ingestion pipeline configuration.

All values can be overridden via environment variables prefixed with
``INGEST_`` (e.g. ``INGEST_EXTRACTION_CONCURRENCY=4``).
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class IngestSettings(BaseSettings):
    """Tuneable knobs for every pipeline stage."""

    # ── Page extraction ──────────────────────────────────────────────────
    extraction_concurrency: int = 10  # pages in flight against the LLM
    render_dpi: int = 150  # page image resolution sent to the LLM

    # ── Workbook scanning ────────────────────────────────────────────────
    header_title: str = "Camp Title"
    header_scan_rows: int = 15
    header_scan_cols: int = 6
    min_row_fields: int = 2  # rows with this many fields or fewer are dropped
    progress_every: int = 500

    # ── Geocoding ────────────────────────────────────────────────────────
    geocode_url: str = "https://nominatim.openstreetmap.org/search"
    geocode_user_agent: str = "summer-camps-converter/1.0"
    geocode_timeout: float = 10.0
    geocode_delay_seconds: float = 1.1  # Nominatim allows 1 req/sec
    geocode_region_suffix: str = "Fairfax County, Virginia, USA"

    # ── Description matching ─────────────────────────────────────────────
    fuzzy_match_threshold: float = 0.6
    unmatched_sample_size: int = 30

    model_config = {
        "env_prefix": "INGEST_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


ingest_settings = IngestSettings()

"""
Ingestion pipeline for summer camp source data.

Modules
-------
config       – Pipeline-specific settings (concurrency, rate limits, thresholds …)
schemas      – Pydantic models for CampRecord, ParsedDate/Time, CampDescription
limiter      – FIFO concurrency limiter for asyncio tasks
pdf_parser   – Page splitting & rendering (PyMuPDF)
extraction   – Brochure page → markdown via a vision LLM, bounded by the limiter
inference    – Date / time / currency / age parsers and the column dispatch table
workbook     – Header detection, row cleanup and record building (pandas)
geocoding    – Nominatim lookups with persistent cache and address overrides
markdown     – Brochure markdown → CampDescription candidates
enrichment   – Code / name / fuzzy matching of descriptions onto records
pipeline     – End-to-end orchestrator wiring everything together
"""

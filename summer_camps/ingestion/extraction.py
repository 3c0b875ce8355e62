"""
Brochure → markdown extraction.

Splits a scanned brochure into single pages and asks a vision LLM to turn
every page into clean markdown, with at most ``extraction_concurrency`` pages
in flight. Output layout for ``brochure.pdf``::

    brochure-pages/
        brochure-page-1.pdf
        brochure-page-1.md      # "# Page 1" + extracted markdown
        ...
        brochure-combined.md    # every page, in page order

Pages are never retried. When any page fails the run raises
``ExtractionFailed`` naming the failed pages so they can be resubmitted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable

from summer_camps.ingestion.config import ingest_settings
from summer_camps.ingestion.limiter import ConcurrencyLimiter
from summer_camps.ingestion.pdf_parser import PageDocument, render_page_png, split_pages

logger = logging.getLogger(__name__)

PageExtractor = Callable[[bytes, int], Awaitable[str]]

PAGE_SEPARATOR = "\n\n---\n\n"

SYSTEM_PROMPT = (
    "You are an expert at extracting structured information from summer camp brochures.\n"
    "Your task is to extract camp descriptions and convert them to clean, semantic markdown.\n\n"
    "For each camp you find on the page, extract:\n"
    "- Camp name (as a heading)\n"
    "- Age range\n"
    "- Dates and times\n"
    "- Location\n"
    "- Fee/cost\n"
    "- Description of activities\n\n"
    "Format the output as clean markdown. Use headings, bullet points, and proper formatting.\n"
    "If a page contains no camp information (e.g., it's a cover page, table of contents, "
    "or general info), summarize what the page contains briefly.\n\n"
    "Be thorough and capture all camps listed on the page."
)


class PageExtractionError(RuntimeError):
    """Extraction of a single page failed."""

    def __init__(self, page_number: int, cause: BaseException) -> None:
        super().__init__(f"page {page_number}: {cause}")
        self.page_number = page_number
        self.cause = cause


class ExtractionFailed(RuntimeError):
    """One or more pages failed; the combined file was not written."""

    def __init__(self, errors: list[PageExtractionError]) -> None:
        self.errors = sorted(errors, key=lambda e: e.page_number)
        pages = ", ".join(str(p) for p in self.page_numbers)
        super().__init__(f"{len(self.errors)} page(s) failed: {pages}")

    @property
    def page_numbers(self) -> list[int]:
        return [e.page_number for e in self.errors]


@dataclass
class PageResult:
    page_number: int
    markdown: str
    pdf_path: Path
    markdown_path: Path


@dataclass
class ExtractionStats:
    """Counters for a single extraction run."""

    pages_total: int = 0
    pages_completed: int = 0
    combined_path: Path | None = None
    page_files: list[Path] = field(default_factory=list)
    elapsed_seconds: float = 0.0


async def extract_page_with_llm(pdf_bytes: bytes, page_number: int) -> str:
    """Default extractor: render the page and send it to the vision LLM."""
    from summer_camps.services import llm  # local import keeps the client lazy

    png = await asyncio.to_thread(render_page_png, pdf_bytes)
    return await llm.chat_with_image(
        SYSTEM_PROMPT,
        f"Extract all summer camp information from this brochure page (page {page_number}). "
        "Convert to clean, semantic markdown.",
        png,
    )


def default_output_dir(input_path: Path) -> Path:
    return input_path.parent / f"{input_path.stem}-pages"


def combine_pages(results: list[PageResult]) -> str:
    """Join page markdown in ascending page order, whatever the completion order."""
    ordered = sorted(results, key=lambda r: r.page_number)
    return PAGE_SEPARATOR.join(r.markdown for r in ordered)


class DocumentExtractionPipeline:
    """Runs every page of a PDF through *extractor* under a concurrency limit."""

    def __init__(
        self,
        extractor: PageExtractor | None = None,
        *,
        concurrency: int | None = None,
        limiter: ConcurrencyLimiter | None = None,
    ) -> None:
        self.extractor = extractor or extract_page_with_llm
        self.limiter = limiter or ConcurrencyLimiter(
            concurrency or ingest_settings.extraction_concurrency
        )
        self._completed = 0

    async def run(self, input_path: Path, output_dir: Path | None = None) -> ExtractionStats:
        input_path = Path(input_path)
        if not input_path.exists():
            raise FileNotFoundError(f"Input PDF does not exist: {input_path}")

        t0 = time.time()
        base_name = input_path.stem
        out_dir = Path(output_dir) if output_dir else default_output_dir(input_path)
        out_dir.mkdir(parents=True, exist_ok=True)

        pages = list(split_pages(input_path))
        total = len(pages)
        self._completed = 0
        logger.info(
            "Processing %s (%d pages), concurrency %d.",
            input_path.name, total, self.limiter.limit,
        )

        outcomes = await asyncio.gather(
            *(self._process_page(page, base_name, out_dir, total) for page in pages),
            return_exceptions=True,
        )

        results: list[PageResult] = []
        errors: list[PageExtractionError] = []
        for page, outcome in zip(pages, outcomes):
            if isinstance(outcome, PageResult):
                results.append(outcome)
            elif isinstance(outcome, PageExtractionError):
                errors.append(outcome)
            elif isinstance(outcome, BaseException):
                errors.append(PageExtractionError(page.page_number, outcome))

        stats = ExtractionStats(
            pages_total=total,
            pages_completed=len(results),
            page_files=[p for r in sorted(results, key=lambda r: r.page_number)
                        for p in (r.pdf_path, r.markdown_path)],
        )

        if errors:
            for err in sorted(errors, key=lambda e: e.page_number):
                logger.error("  ✗ Page %d failed: %s", err.page_number, err.cause)
            raise ExtractionFailed(errors)

        combined_path = out_dir / f"{base_name}-combined.md"
        combined_path.write_text(combine_pages(results), encoding="utf-8")
        stats.combined_path = combined_path
        stats.elapsed_seconds = time.time() - t0
        logger.info(
            "Extraction complete: %d pages → %s in %.1fs.",
            total, combined_path, stats.elapsed_seconds,
        )
        return stats

    async def _process_page(
        self,
        page: PageDocument,
        base_name: str,
        out_dir: Path,
        total: int,
    ) -> PageResult:
        pdf_path = out_dir / f"{base_name}-page-{page.page_number}.pdf"
        await asyncio.to_thread(pdf_path.write_bytes, page.pdf_bytes)

        async with self.limiter:
            try:
                text = await self.extractor(page.pdf_bytes, page.page_number)
            except Exception as exc:
                raise PageExtractionError(page.page_number, exc) from exc

            markdown = f"# Page {page.page_number}\n\n{text}"
            md_path = out_dir / f"{base_name}-page-{page.page_number}.md"
            await asyncio.to_thread(md_path.write_text, markdown, encoding="utf-8")

        self._completed += 1
        logger.info(
            "  ✓ Page %d/%d (%d completed)", page.page_number, total, self._completed
        )
        return PageResult(
            page_number=page.page_number,
            markdown=markdown,
            pdf_path=pdf_path,
            markdown_path=md_path,
        )


async def split_pdf_to_markdown(
    input_path: Path,
    output_dir: Path | None = None,
    *,
    extractor: PageExtractor | None = None,
    concurrency: int | None = None,
) -> ExtractionStats:
    """Convenience wrapper around :class:`DocumentExtractionPipeline`."""
    pipeline = DocumentExtractionPipeline(extractor, concurrency=concurrency)
    return await pipeline.run(input_path, output_dir)

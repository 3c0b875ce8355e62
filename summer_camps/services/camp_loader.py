"""
CLI entry-point for the camp data pipeline.

Usage
-----
    python -m summer_camps.services.camp_loader split-pdf brochure.pdf [output-dir] [--concurrency 10]
    python -m summer_camps.services.camp_loader convert camps.xlsx [output.json] [--no-geocode]
    python -m summer_camps.services.camp_loader enrich [--markdown M] [--dataset D] [--output O]

Progress and summaries go to stderr; ``convert`` without an output path
writes the dataset JSON to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import zipfile
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def _require(path: Path) -> Path:
    if not path.exists():
        logger.error("Input file does not exist: %s", path)
        sys.exit(1)
    return path


def _summary(title: str, rows: list[tuple[str, object]]) -> None:
    print(f"\n══════════════ {title} ══════════════", file=sys.stderr)
    for label, value in rows:
        print(f"  {label:<18}: {value}", file=sys.stderr)
    print("═" * (len(title) + 32), file=sys.stderr)


def cmd_split_pdf(args: argparse.Namespace) -> None:
    from summer_camps.ingestion.extraction import ExtractionFailed, split_pdf_to_markdown

    input_path = _require(Path(args.input))
    output_dir = Path(args.output_dir) if args.output_dir else None
    try:
        stats = asyncio.run(
            split_pdf_to_markdown(input_path, output_dir, concurrency=args.concurrency)
        )
    except ExtractionFailed as exc:
        logger.error("Extraction failed: %s", exc)
        for err in exc.errors:
            logger.error("  resubmit page %d: %s", err.page_number, err.cause)
        sys.exit(1)

    _summary("Extraction Summary", [
        ("Pages", stats.pages_total),
        ("Page PDFs", stats.pages_completed),
        ("Page markdown", stats.pages_completed),
        ("Combined markdown", stats.combined_path),
        ("Elapsed", f"{stats.elapsed_seconds:.1f}s"),
    ])


def cmd_convert(args: argparse.Namespace) -> None:
    from summer_camps.ingestion.pipeline import (
        build_resolver,
        convert_workbook,
        dump_dataset,
        write_dataset,
    )

    workbook = _require(Path(args.input))

    try:
        resolver = None if args.no_geocode else build_resolver()
        dataset, stats = convert_workbook(workbook, resolver=resolver)
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        logger.error("Could not convert %s: %s", workbook, exc)
        sys.exit(1)

    if args.output:
        write_dataset(dataset, Path(args.output))
    else:
        sys.stdout.write(dump_dataset(dataset) + "\n")

    _summary("Conversion Summary", [
        *((f"Sheet {name}", count) for name, count in stats.sheets.items()),
        ("Total camps", stats.total_camps),
        ("Geocoded camps", stats.geocoded),
        ("Cached locations", stats.cache_size),
        ("Elapsed", f"{stats.elapsed_seconds:.1f}s"),
    ])


def cmd_enrich(args: argparse.Namespace) -> None:
    from summer_camps.ingestion.pipeline import enrich_dataset
    from summer_camps.ingestion.schemas import MatchMethod

    try:
        stats = enrich_dataset(
            markdown_path=Path(args.markdown) if args.markdown else None,
            dataset_path=Path(args.dataset) if args.dataset else None,
            output_path=Path(args.output) if args.output else None,
        )
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Could not parse input: %s", exc)
        sys.exit(1)

    _summary("Enrichment Summary", [
        ("Descriptions", stats.descriptions_found),
        ("Unique codes", stats.unique_codes),
        ("Matched by code", stats.matched[MatchMethod.CODE]),
        ("Matched by name", stats.matched[MatchMethod.NAME]),
        ("Matched normalized", stats.matched[MatchMethod.NORMALIZED_NAME]),
        ("Matched fuzzy", stats.matched[MatchMethod.FUZZY]),
        ("Total matched", stats.total_matched),
        ("Unmatched", stats.unmatched),
    ])
    if stats.unmatched_samples:
        print("\nSample unmatched camps:", file=sys.stderr)
        for title, catalog_id in stats.unmatched_samples:
            print(f"  - {title} ({catalog_id or 'no code'})", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Summer camp data pipeline CLI",
        prog="python -m summer_camps.services.camp_loader",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # split-pdf
    p_split = sub.add_parser("split-pdf", help="Extract brochure pages to markdown")
    p_split.add_argument("input", type=str, help="Path to the brochure PDF")
    p_split.add_argument("output_dir", nargs="?", default=None, help="Defaults to <name>-pages/")
    p_split.add_argument("--concurrency", type=int, default=None, help="Pages in flight")
    p_split.set_defaults(func=cmd_split_pdf)

    # convert
    p_convert = sub.add_parser("convert", help="Convert the camps workbook to JSON")
    p_convert.add_argument("input", type=str, help="Path to the .xlsx workbook")
    p_convert.add_argument("output", nargs="?", default=None, help="Output JSON (stdout if omitted)")
    p_convert.add_argument("--no-geocode", action="store_true", help="Skip location geocoding")
    p_convert.set_defaults(func=cmd_convert)

    # enrich
    p_enrich = sub.add_parser("enrich", help="Attach brochure descriptions to the dataset")
    p_enrich.add_argument("--markdown", type=str, default=None, help="Combined brochure markdown")
    p_enrich.add_argument("--dataset", type=str, default=None, help="Dataset JSON from convert")
    p_enrich.add_argument("--output", type=str, default=None, help="Enriched dataset JSON")
    p_enrich.set_defaults(func=cmd_enrich)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()

"""
End-to-end tests for the pipeline runs and the command-line entry point.

Network and LLM calls are replaced with mocks; everything else (PyMuPDF,
pandas/openpyxl, file layout) runs for real against tmp_path fixtures.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

BROCHURE_MD = """# Page 1

## Nature
**Description:** Explore the outdoors.

## Robotics Workshop (Junior)
- **Description:** Build and code robots.

---

# Page 2

## Studio Arts
| 12C.0002 | Jun 22 |
**Description:** Painting and clay.
"""


# ═══════════════════════════════════════════════════════════════════════════
# Workbook conversion
# ═══════════════════════════════════════════════════════════════════════════

class TestConvertWorkbook:
    def test_convert_with_cache_and_overrides(self, camps_workbook, tmp_path, monkeypatch):
        from summer_camps.ingestion.config import ingest_settings
        from summer_camps.ingestion.pipeline import build_resolver, convert_workbook
        from summer_camps.ingestion.schemas import Coordinates

        monkeypatch.setattr(ingest_settings, "geocode_delay_seconds", 0.0)

        overrides = tmp_path / "location-addresses.json"
        overrides.write_text(json.dumps({"Tech Center|East Community": None}), encoding="utf-8")
        cache_path = tmp_path / ".geocode-cache.json"

        client = MagicMock()
        client.search.return_value = Coordinates(lat=38.84, lng=-77.31)
        resolver = build_resolver(cache_path, overrides, client)

        dataset, stats = convert_workbook(camps_workbook, resolver=resolver)

        client.search.assert_called_once_with(
            "Field A, West Community, Fairfax County, Virginia, USA"
        )
        client.close.assert_called_once()
        assert stats.sheets == {"2026 FCPA Camps": 3}
        assert stats.total_camps == 3
        assert stats.geocoded == 2
        assert stats.cache_size == 2

        cached = json.loads(cache_path.read_text(encoding="utf-8"))
        assert cached == {
            "Field A|West Community": {"lat": 38.84, "lng": -77.31},
            "Tech Center|East Community": None,
        }
        assert dataset["2026 FCPA Camps"].camps[1].coordinates is None

    def test_second_run_is_served_from_cache(self, camps_workbook, tmp_path):
        from summer_camps.ingestion.pipeline import build_resolver, convert_workbook
        from summer_camps.ingestion.schemas import Coordinates

        cache_path = tmp_path / "cache.json"
        cache_path.write_text(json.dumps({
            "Field A|West Community": {"lat": 1.0, "lng": 2.0},
            "Tech Center|East Community": {"lat": 3.0, "lng": 4.0},
        }), encoding="utf-8")

        client = MagicMock()
        resolver = build_resolver(cache_path, tmp_path / "missing-overrides.json", client)
        dataset, stats = convert_workbook(camps_workbook, resolver=resolver)

        client.search.assert_not_called()
        assert stats.geocoded == 3
        assert dataset["2026 FCPA Camps"].camps[1].coordinates == Coordinates(lat=3.0, lng=4.0)

    def test_write_and_load_dataset(self, camps_workbook, tmp_path):
        from summer_camps.ingestion.pipeline import convert_workbook, load_dataset, write_dataset

        dataset, _ = convert_workbook(camps_workbook)
        out = tmp_path / "out" / "fcpa-camps.json"
        write_dataset(dataset, out)

        payload = json.loads(out.read_text(encoding="utf-8"))
        camp = payload["2026 FCPA Camps"]["camps"][0]
        assert camp["startDate"]["iso"] == "2026-06-15"
        assert camp["startTime"]["minutesSinceMidnight"] == 540
        assert camp["catalogId"] == "12A.3456"
        assert camp["extendedCare"] == "Yes"
        assert camp["fee"] == 139 and isinstance(camp["fee"], int)
        assert '"fee": 139,' in out.read_text(encoding="utf-8")
        assert "coordinates" not in camp
        assert payload["2026 FCPA Camps"]["metadata"]["totalCamps"] == 3

        reloaded = load_dataset(out)
        assert reloaded["2026 FCPA Camps"].camps[1].start_date == "TBD"
        assert reloaded["2026 FCPA Camps"].camps[2].fee == 55


# ═══════════════════════════════════════════════════════════════════════════
# Description enrichment
# ═══════════════════════════════════════════════════════════════════════════

class TestEnrichDataset:
    def _inputs(self, camps_workbook, tmp_path):
        from summer_camps.ingestion.pipeline import convert_workbook, write_dataset

        dataset, _ = convert_workbook(camps_workbook)
        dataset_path = tmp_path / "fcpa-camps.json"
        write_dataset(dataset, dataset_path)
        markdown_path = tmp_path / "summer-camps-combined.md"
        markdown_path.write_text(BROCHURE_MD, encoding="utf-8")
        return markdown_path, dataset_path

    def test_enrich_writes_descriptions(self, camps_workbook, tmp_path):
        from summer_camps.ingestion.pipeline import enrich_dataset
        from summer_camps.ingestion.schemas import MatchMethod

        markdown_path, dataset_path = self._inputs(camps_workbook, tmp_path)
        output = tmp_path / "fcpa-camps-enriched.json"

        stats = enrich_dataset(markdown_path, dataset_path, output)

        assert stats.descriptions_found == 3
        assert stats.unique_codes == 1
        assert stats.matched[MatchMethod.CODE] == 1
        assert stats.matched[MatchMethod.NORMALIZED_NAME] == 1
        assert stats.matched[MatchMethod.FUZZY] == 1
        assert stats.unmatched == 0

        camps = json.loads(output.read_text(encoding="utf-8"))["2026 FCPA Camps"]["camps"]
        assert [c["description"] for c in camps] == [
            "Explore the outdoors.",
            "Build and code robots.",
            "Painting and clay.",
        ]
        # Source dataset is left untouched
        original = json.loads(dataset_path.read_text(encoding="utf-8"))
        assert "description" not in original["2026 FCPA Camps"]["camps"][0]

    def test_non_sheet_keys_pass_through(self, camps_workbook, tmp_path):
        from summer_camps.ingestion.pipeline import enrich_dataset

        markdown_path, dataset_path = self._inputs(camps_workbook, tmp_path)
        payload = json.loads(dataset_path.read_text(encoding="utf-8"))
        payload["meta"] = {"source": "registration export", "version": 3}
        dataset_path.write_text(json.dumps(payload), encoding="utf-8")
        output = tmp_path / "enriched.json"

        enrich_dataset(markdown_path, dataset_path, output)

        enriched = json.loads(output.read_text(encoding="utf-8"))
        assert list(enriched) == ["2026 FCPA Camps", "meta"]
        assert enriched["meta"] == {"source": "registration export", "version": 3}
        assert enriched["2026 FCPA Camps"]["camps"][0]["description"] == "Explore the outdoors."

    def test_missing_inputs(self, tmp_path):
        from summer_camps.ingestion.pipeline import enrich_dataset

        with pytest.raises(FileNotFoundError):
            enrich_dataset(tmp_path / "none.md", tmp_path / "none.json", tmp_path / "out.json")
        assert not (tmp_path / "out.json").exists()

    def test_read_dataset_payload(self, tmp_path):
        from summer_camps.ingestion.pipeline import read_dataset_payload

        assert read_dataset_payload(tmp_path / "absent.json") is None
        path = tmp_path / "present.json"
        path.write_text('{"S": {"camps": [], "metadata": {}}}', encoding="utf-8")
        assert read_dataset_payload(path) == {"S": {"camps": [], "metadata": {}}}


# ═══════════════════════════════════════════════════════════════════════════
# LLM client
# ═══════════════════════════════════════════════════════════════════════════

class TestLLMClient:
    def test_chat_with_image_sends_data_url(self, monkeypatch):
        from summer_camps.config import settings
        from summer_camps.services import llm

        message = MagicMock()
        message.content = "  ## Camp\n"
        choice = MagicMock()
        choice.message = message
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[choice]))
        monkeypatch.setattr(llm, "_client", fake)

        reply = asyncio.run(llm.chat_with_image("system", "user", b"\x89PNGdata"))

        assert reply == "## Camp"
        kwargs = fake.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == settings.llm_model
        assert kwargs["max_tokens"] == settings.llm_max_tokens
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        image, text = kwargs["messages"][1]["content"]
        assert image["image_url"]["url"].startswith("data:image/png;base64,")
        assert text == {"type": "text", "text": "user"}


# ═══════════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════════

class TestCLI:
    def test_convert_to_file(self, camps_workbook, tmp_path):
        from summer_camps.services.camp_loader import main

        out = tmp_path / "camps.json"
        main(["convert", str(camps_workbook), str(out), "--no-geocode"])
        payload = json.loads(out.read_text(encoding="utf-8"))
        assert payload["2026 FCPA Camps"]["metadata"]["totalCamps"] == 3

    def test_convert_to_stdout(self, camps_workbook, capsys):
        from summer_camps.services.camp_loader import main

        main(["convert", str(camps_workbook), "--no-geocode"])
        captured = capsys.readouterr()
        assert list(json.loads(captured.out)) == ["2026 FCPA Camps"]
        assert "Conversion Summary" in captured.err

    def test_missing_input_exits_1(self, tmp_path):
        from summer_camps.services.camp_loader import main

        with pytest.raises(SystemExit) as info:
            main(["convert", str(tmp_path / "missing.xlsx"), "--no-geocode"])
        assert info.value.code == 1

        with pytest.raises(SystemExit) as info:
            main(["enrich", "--markdown", str(tmp_path / "a.md"), "--dataset", str(tmp_path / "b.json")])
        assert info.value.code == 1

    def test_malformed_geocode_cache_exits_1(self, camps_workbook, tmp_path, monkeypatch, caplog):
        from summer_camps.config import settings
        from summer_camps.services.camp_loader import main

        bad_cache = tmp_path / ".geocode-cache.json"
        bad_cache.write_text("{not json", encoding="utf-8")
        monkeypatch.setattr(settings, "geocode_cache_path", bad_cache)
        monkeypatch.setattr(settings, "address_overrides_path", tmp_path / "none.json")

        with pytest.raises(SystemExit) as info:
            main(["convert", str(camps_workbook), str(tmp_path / "out.json")])
        assert info.value.code == 1
        assert "Could not convert" in caplog.text
        assert not (tmp_path / "out.json").exists()

    def test_truncated_workbook_exits_1(self, tmp_path, caplog):
        from summer_camps.services.camp_loader import main

        broken = tmp_path / "broken.xlsx"
        broken.write_bytes(b"PK\x03\x04truncated")

        with pytest.raises(SystemExit) as info:
            main(["convert", str(broken), "--no-geocode"])
        assert info.value.code == 1
        assert "Could not convert" in caplog.text

    def test_enrich_prints_unmatched(self, camps_workbook, tmp_path, capsys):
        from summer_camps.services.camp_loader import main

        dataset_path = tmp_path / "camps.json"
        main(["convert", str(camps_workbook), str(dataset_path), "--no-geocode"])
        markdown_path = tmp_path / "brochure.md"
        markdown_path.write_text("## Nature\n**Description:** Outdoors.\n", encoding="utf-8")

        main([
            "enrich", "--markdown", str(markdown_path),
            "--dataset", str(dataset_path), "--output", str(tmp_path / "enriched.json"),
        ])
        err = capsys.readouterr().err
        assert "Sample unmatched camps:" in err
        assert "Junior Robotics Camp (12B.0001)" in err

    def test_split_pdf(self, brochure_pdf, capsys):
        from summer_camps.services.camp_loader import main

        with patch("summer_camps.services.llm.chat_with_image", new=AsyncMock(return_value="text")):
            main(["split-pdf", str(brochure_pdf), "--concurrency", "2"])

        combined = brochure_pdf.parent / "brochure-pages" / "brochure-combined.md"
        assert combined.read_text(encoding="utf-8").startswith("# Page 1\n\ntext")
        assert "Extraction Summary" in capsys.readouterr().err

    def test_split_pdf_failure_exits_1(self, brochure_pdf, tmp_path):
        from summer_camps.services.camp_loader import main

        chat = AsyncMock(side_effect=["ok", RuntimeError("model offline"), "ok", "ok", "ok"])
        out_dir = tmp_path / "pages"
        with patch("summer_camps.services.llm.chat_with_image", new=chat):
            with pytest.raises(SystemExit) as info:
                main(["split-pdf", str(brochure_pdf), str(out_dir), "--concurrency", "1"])

        assert info.value.code == 1
        assert not (out_dir / "brochure-combined.md").exists()

"""
Tests for the cinearchive command line interface.
"""

import json

import pytest
import yaml

from cinearchive.cli import load_corrections, load_pages, main
from cinearchive.models import ReviewStatus, Span

ARTICLE = "صدر العدد الجديد من مجلة الكواكب وفيه مقال عن الفيلم المصري"


@pytest.fixture
def manifest(tmp_path):
    path = tmp_path / "collection.yaml"
    pages = [
        {"documentId": "a", "pageIndex": 1, "text": ARTICLE},
        {"documentId": "b", "pageIndex": 2, "text": ARTICLE},
        {"documentId": "c", "pageIndex": 3, "text": ARTICLE},
    ]
    path.write_text(yaml.safe_dump({"pages": pages}, allow_unicode=True), encoding="utf-8")
    return path


@pytest.fixture
def page_files(tmp_path, arabic_source):
    text_path = tmp_path / "page.txt"
    text_path.write_text(arabic_source, encoding="utf-8")
    corrections_path = tmp_path / "reviewed.json"
    corrections_path.write_text(
        json.dumps(
            [
                {
                    "id": "1",
                    "type": "ocr_error",
                    "original": "الفلم",
                    "corrected": "الفيلم",
                    "position": {"start": 0, "end": 5},
                    "confidence": 0.99,
                    "status": "approved",
                },
                {
                    "id": "2",
                    "original": "الجميل",
                    "corrected": "الجميلة",
                    "position": {"start": 6, "end": 12},
                    "status": "rejected",
                },
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return text_path, corrections_path


class TestLoaders:
    def test_load_pages(self, manifest):
        pages = load_pages(manifest)
        assert [p.document_id for p in pages] == ["a", "b", "c"]
        assert pages[0].page_index == 1

    def test_load_pages_alternate_keys(self, tmp_path):
        path = tmp_path / "pages.json"
        path.write_text(json.dumps([{"document_id": "x", "ocrText": "abc"}]), encoding="utf-8")
        [page] = load_pages(path)
        assert (page.document_id, page.page_index, page.text) == ("x", 1, "abc")

    def test_load_corrections(self, page_files):
        _, corrections_path = page_files
        corrections = load_corrections(corrections_path)
        assert [c.status for c in corrections] == [ReviewStatus.APPROVED, ReviewStatus.REJECTED]
        assert corrections[0].span == Span(0, 5)


class TestDuplicatesCommand:
    def test_json_report(self, manifest, capsys):
        assert main(["duplicates", str(manifest), "--json"]) == 0
        report = json.loads(capsys.readouterr().out)

        assert len(report["duplicates"]) == 3
        assert report["suggestedRemovals"] == ["b", "c"]
        assert report["duplicateChains"] == [["a", "b", "c"]]

    def test_text_report(self, manifest, capsys):
        assert main(["duplicates", str(manifest)]) == 0
        out = capsys.readouterr().out
        assert "exact" in out
        assert "Suggested removals: b, c" in out

    def test_invalid_thresholds(self, manifest, capsys):
        assert main(["duplicates", str(manifest), "--near", "0.99"]) == 1
        assert "Error:" in capsys.readouterr().err


class TestApplyCommand:
    def test_prints_corrected_text(self, page_files, capsys):
        text_path, corrections_path = page_files
        assert main(["apply", str(text_path), str(corrections_path)]) == 0
        assert capsys.readouterr().out.strip() == "الفيلم الجميل"

    def test_writes_output_file(self, page_files, tmp_path):
        text_path, corrections_path = page_files
        output = tmp_path / "page.corrected.txt"
        assert main(["apply", str(text_path), str(corrections_path), "-o", str(output)]) == 0
        assert output.read_text(encoding="utf-8") == "الفيلم الجميل"

    def test_missing_file(self, tmp_path, capsys):
        missing = tmp_path / "missing.txt"
        assert main(["apply", str(missing), str(missing)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_malformed_correction_reported(self, page_files, tmp_path, capsys):
        text_path, _ = page_files
        reviewed = tmp_path / "reviewed.yaml"
        reviewed.write_text(
            yaml.safe_dump([{"original": "x", "corrected": "y", "confidence": None}]),
            encoding="utf-8",
        )

        assert main(["apply", str(text_path), str(reviewed)]) == 1
        assert "Error: Correction entry has no id" in capsys.readouterr().err


class TestValidateCommand:
    def test_validates_saved_reply(self, tmp_path, arabic_source, capsys):
        reply = {
            "corrections": [
                {
                    "id": "1",
                    "original": "الفلم",
                    "corrected": "الفيلم",
                    "position": {"start": 2, "end": 7},
                    "confidence": 0.99,
                }
            ],
            "confidence": 0.95,
        }
        reply_path = tmp_path / "reply.json"
        reply_path.write_text(json.dumps(reply, ensure_ascii=False)[:-1], encoding="utf-8")
        text_path = tmp_path / "page.txt"
        text_path.write_text(arabic_source, encoding="utf-8")

        assert main(["validate", str(reply_path), str(text_path), "--model", "gpt-4o"]) == 0
        result = json.loads(capsys.readouterr().out)

        assert result["repairStrategy"] == "closed"
        assert result["modelUsed"] == "gpt-4o"
        assert result["corrections"][0]["position"] == {"start": 0, "end": 5}


class TestDetectCommand:
    def test_requires_api_key(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        text_path = tmp_path / "page.txt"
        text_path.write_text("نص", encoding="utf-8")

        assert main(["detect", str(text_path)]) == 1
        assert "OPENAI_API_KEY" in capsys.readouterr().err


class TestEstimateCommand:
    def test_estimate(self, capsys):
        assert main(["estimate", "1000", "--model", "gpt-4o"]) == 0
        out = capsys.readouterr().out
        assert "Model: gpt-4o" in out
        assert "Estimated cost: $9.50" in out
        assert "Input tokens:  1,000,000" in out

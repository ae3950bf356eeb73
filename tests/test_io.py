"""
Tests for I/O utilities and configuration.
"""

import json
import logging
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def fragment_record(text, y):
    return {
        "text": text,
        "boundingBox": {"x": 0.1, "y": y, "width": 0.3, "height": 0.02},
        "confidence": 0.9
    }


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadPages:
    """Test fragment loading."""

    def test_list_is_one_page(self, tmp_path):
        """Test a fragment list loads as one page."""
        from docstruct.io import load_pages

        path = write_json(tmp_path / "page.json", [fragment_record("a", 0.9), fragment_record("b", 0.8)])

        pages = load_pages(path)

        assert len(pages) == 1
        assert [f.text for f in pages[0].fragments] == ["a", "b"]
        assert pages[0].size == (1.0, 1.0)

    def test_object_with_size(self, tmp_path):
        """Test a page object with a size."""
        from docstruct.io import load_pages

        path = write_json(tmp_path / "page.json", {
            "fragments": [fragment_record("a", 0.9)],
            "size": [612, 792]
        })

        pages = load_pages(path)

        assert pages[0].size == (612.0, 792.0)

    def test_pages_object(self, tmp_path):
        """Test a multi-page object."""
        from docstruct.io import load_pages

        path = write_json(tmp_path / "doc.json", {
            "pages": [[fragment_record("p1", 0.9)], {"fragments": [fragment_record("p2", 0.9)]}]
        })

        pages = load_pages(path)

        assert [p.fragments[0].text for p in pages] == ["p1", "p2"]

    def test_folder_sorted_by_name(self, tmp_path):
        """Test folder pages sorted by file name."""
        from docstruct.io import load_pages

        write_json(tmp_path / "page_02.json", [fragment_record("second", 0.9)])
        write_json(tmp_path / "page_01.json", [fragment_record("first", 0.9)])
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        pages = load_pages(tmp_path)

        assert [p.fragments[0].text for p in pages] == ["first", "second"]

    def test_missing_file(self, tmp_path):
        """Test loading a missing file."""
        from docstruct.io import load_pages

        with pytest.raises(FileNotFoundError):
            load_pages(tmp_path / "missing.json")

    def test_unrecognized_layout(self, tmp_path):
        """Test an unrecognized JSON layout."""
        from docstruct.io import load_pages

        path = write_json(tmp_path / "page.json", {"blocks": []})

        with pytest.raises(ValueError, match="fragments"):
            load_pages(path)

    def test_invalid_json(self, tmp_path):
        """Test loading invalid JSON."""
        from docstruct.io import load_pages

        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            load_pages(path)

    def test_load_fragments_single_page(self, tmp_path):
        """Test loading one page of fragments."""
        from docstruct.io import load_fragments

        path = write_json(tmp_path / "page.json", [fragment_record("a", 0.9)])

        assert [f.text for f in load_fragments(path)] == ["a"]

    def test_load_fragments_rejects_multi_page(self, tmp_path):
        """Test multi-page input is rejected for one page."""
        from docstruct.io import load_fragments

        path = write_json(tmp_path / "doc.json", {"pages": [[], []]})

        with pytest.raises(ValueError):
            load_fragments(path)


class TestSelectPages:
    """Test page range selection."""

    def test_no_range_keeps_all(self):
        """Test no range keeps every page."""
        from docstruct.io import select_pages

        assert select_pages(["a", "b"], None) == ["a", "b"]

    def test_ranges(self):
        """Test ranges and single pages."""
        from docstruct.io import select_pages

        assert select_pages(list("abcde"), "1-2,4") == ["a", "b", "d"]

    @pytest.mark.parametrize("page_range", ["0", "6", "3-1", "x", "1-"])
    def test_invalid(self, page_range):
        """Test malformed and out of range selections."""
        from docstruct.io import select_pages

        with pytest.raises(ValueError):
            select_pages(list("abcde"), page_range)


class TestJSON:
    """Test JSON helpers."""

    def test_save_model_objects(self, tmp_path):
        """Test saving model, numpy and path values."""
        import numpy as np
        from docstruct.io import load_json, save_json
        from docstruct.geometry import BoundingBox
        from docstruct.models import LinkType

        path = save_json({
            "box": BoundingBox(0.1, 0.2, 0.3, 0.4),
            "count": np.int64(3),
            "score": np.float32(0.5),
            "type": LinkType.EMAIL,
            "where": tmp_path
        }, tmp_path / "nested" / "out.json")

        data = load_json(path)
        assert data["box"] == {"x": 0.1, "y": 0.2, "width": 0.3, "height": 0.4}
        assert data["count"] == 3
        assert data["score"] == 0.5
        assert data["type"] == "email"
        assert data["where"] == str(tmp_path)

    def test_load_missing(self, tmp_path):
        """Test loading a missing JSON file."""
        from docstruct.io import load_json

        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")


class TestDetectInputType:
    """Test input type detection."""

    def test_fragments(self, tmp_path):
        """Test fragment file detection."""
        from docstruct.io import detect_input_type

        path = write_json(tmp_path / "page.json", [fragment_record("a", 0.9)])

        assert detect_input_type(path) == "fragments"

    def test_document(self, tmp_path):
        """Test saved document detection."""
        from docstruct.document import MultiPageDocument, StructuredDocument
        from docstruct.io import detect_input_type

        path = write_json(tmp_path / "document.json", MultiPageDocument(pages=[StructuredDocument()]).to_dict())

        assert detect_input_type(path) == "document"

    def test_folder(self, tmp_path):
        """Test fragment folder detection."""
        from docstruct.io import detect_input_type

        assert detect_input_type(tmp_path) == "unknown"
        write_json(tmp_path / "page.json", [])
        assert detect_input_type(tmp_path) == "fragment_folder"

    def test_other(self, tmp_path):
        """Test unsupported inputs."""
        from docstruct.io import detect_input_type

        image = tmp_path / "scan.png"
        image.write_bytes(b"\x89PNG")

        assert detect_input_type(image) == "unknown"
        assert detect_input_type(tmp_path / "missing.json") == "unknown"


class TestConfig:
    """Test configuration."""

    def test_defaults(self):
        """Test default configuration values."""
        from docstruct.config import PipelineConfig

        config = PipelineConfig()

        assert config.layout.line_threshold == 0.5
        assert config.layout.column_gap_threshold == 0.03
        assert config.heading.size_threshold == 1.2
        assert config.heading.max_levels == 6
        assert config.table.minimum_rows == 2
        assert config.table.alignment_tolerance == 0.02
        assert config.lists.minimum_items == 2
        assert config.workers == 4

    def test_env_overrides(self, monkeypatch):
        """Test environment overrides."""
        from docstruct.config import get_config

        monkeypatch.setenv("DOCSTRUCT_WORKERS", "2")
        monkeypatch.setenv("DOCSTRUCT_DEBUG", "true")

        config = get_config()

        assert config.workers == 2
        assert config.debug_mode

    def test_invalid_workers_ignored(self, monkeypatch, caplog):
        """Test a bad worker count is ignored."""
        from docstruct.config import get_config

        monkeypatch.setenv("DOCSTRUCT_WORKERS", "many")

        with caplog.at_level(logging.WARNING, logger="docstruct.config"):
            config = get_config()

        assert config.workers == 4
        assert "DOCSTRUCT_WORKERS" in caplog.text

    def test_assembler_uses_config(self):
        """Test the assembler applies its config."""
        from docstruct.assembler import DocumentAssembler
        from docstruct.config import PipelineConfig, TableConfig

        assembler = DocumentAssembler(PipelineConfig(table=TableConfig(minimum_rows=5)))

        assert assembler.table_detector.minimum_rows == 5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from linkpost.cli import main


def _write_item(tmp_path: Path, item: object) -> Path:
    path = tmp_path / "item.json"
    path.write_text(json.dumps(item), encoding="utf-8")
    return path


def test_preview_renders_tags_and_html(tmp_path: Path) -> None:
    item_path = _write_item(
        tmp_path,
        {
            "_id": 42,
            "title": "A talk",
            "link": "https://www.youtube.com/watch?v=abc123",
            "created": "2024-03-10T18:30:00.000Z",
            "tags": ["1"],
            "note": "Watch the **second** half",
        },
    )

    result = CliRunner().invoke(main, ["preview", str(item_path), "--timezone", "UTC"])

    assert result.exit_code == 0, result.output
    assert "A talk" in result.output
    assert "Tags: links, youtube, 1" in result.output
    assert 'raindrop-id="42"' in result.output
    assert "youtube.com/embed/abc123" in result.output


def test_preview_reports_skipped_bookmark(tmp_path: Path) -> None:
    item_path = _write_item(
        tmp_path,
        {"_id": 7, "title": "Plain", "link": "https://example.com/", "tags": ["1"]},
    )

    result = CliRunner().invoke(main, ["preview", str(item_path)])

    assert result.exit_code == 0
    assert "skipped" in result.output
    assert "raindrop-id" not in result.output


def test_preview_rejects_unreadable_json(tmp_path: Path) -> None:
    item_path = tmp_path / "broken.json"
    item_path.write_text("{not json", encoding="utf-8")

    result = CliRunner().invoke(main, ["preview", str(item_path)])

    assert result.exit_code != 0
    assert "Not a readable Raindrop item" in result.output


def test_preview_rejects_unknown_timezone(tmp_path: Path) -> None:
    item_path = _write_item(
        tmp_path,
        {"_id": 9, "title": "Noted", "link": "https://example.com/", "note": "keep"},
    )

    result = CliRunner().invoke(main, ["preview", str(item_path), "--timezone", "Mars/Olympus"])

    assert result.exit_code == 2
    assert "unknown timezone 'Mars/Olympus'" in result.output
    assert not isinstance(result.exception, LookupError)

"""Tests for the mockseed CLI."""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from mockseed.cli import app

runner = CliRunner()


@pytest.fixture
def spec_file(tmp_path: Path, openapi_document: dict[str, object]) -> Path:
    """Write the demo document as YAML."""
    path = tmp_path / "openapi.yaml"
    path.write_text(yaml.safe_dump(openapi_document), encoding="utf-8")
    return path


class TestSample:
    """Tests for the sample command."""

    def test_sample(self, spec_file: Path) -> None:
        """Prints one item as JSON."""
        result = runner.invoke(app, ["sample", str(spec_file), "User", "--seed", "7"])
        assert result.exit_code == 0, result.output
        item = json.loads(result.output)
        assert item["role"] in ("admin", "member", "guest")
        assert 18 <= item["age"] <= 99

    def test_sample_repeatable(self, spec_file: Path) -> None:
        """The same seed and index print the same item."""
        args = ["sample", str(spec_file), "User", "-s", "7", "-i", "3"]
        assert runner.invoke(app, args).output == runner.invoke(app, args).output

    def test_json_document(self, tmp_path: Path, openapi_document: dict[str, object]) -> None:
        """JSON documents load too."""
        path = tmp_path / "openapi.json"
        path.write_text(json.dumps(openapi_document), encoding="utf-8")
        result = runner.invoke(app, ["sample", str(path), "Role"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) in ("admin", "member", "guest")

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable documents exit with an error."""
        result = runner.invoke(app, ["sample", str(tmp_path / "nope.yaml"), "User"])
        assert result.exit_code == 1
        assert "Failed to load schema source" in result.output

    def test_unknown_model(self, spec_file: Path) -> None:
        """Unknown schemas exit with an error."""
        result = runner.invoke(app, ["sample", str(spec_file), "Nope"])
        assert result.exit_code == 1
        assert "openapi model not found: Nope" in result.output


class TestWindows:
    """Tests for the page and cursor commands."""

    def test_page(self, spec_file: Path) -> None:
        """Prints a page window."""
        result = runner.invoke(
            app, ["page", str(spec_file), "User", "-p", "3", "-l", "5", "-t", "12"]
        )
        assert result.exit_code == 0, result.output
        body = json.loads(result.output)
        assert len(body["items"]) == 2
        assert body["pagination"] == {"page": 3, "limit": 5, "total": 12, "totalPages": 3}

    def test_cursor_walk(self, spec_file: Path) -> None:
        """A printed next cursor continues the walk."""
        base = ["cursor", str(spec_file), "User", "-l", "5", "-t", "8", "--seed", "9"]
        first = json.loads(runner.invoke(app, base).output)
        assert first["hasMore"] is True

        # Each invocation builds a fresh snapshot; ids are the same for the same seed.
        result = runner.invoke(app, [*base, "--cursor", first["nextCursor"]])
        assert result.exit_code == 0, result.output
        second = json.loads(result.output)
        assert len(second["items"]) == 3
        assert second["hasMore"] is False
        assert second["hasPrev"] is True

    def test_cursor_backward(self, spec_file: Path) -> None:
        """--backward without a cursor prints the last window."""
        result = runner.invoke(
            app, ["cursor", str(spec_file), "User", "-l", "5", "-t", "8", "--backward"]
        )
        assert result.exit_code == 0, result.output
        body = json.loads(result.output)
        assert len(body["items"]) == 5
        assert "nextCursor" not in body
        assert body["hasPrev"] is True


class TestScan:
    """Tests for the scan command."""

    def test_scan(self, client_package_dir: Path) -> None:
        """Summarizes endpoints and models."""
        result = runner.invoke(app, ["scan", str(client_package_dir)])
        assert result.exit_code == 0, result.output
        assert "@demo/client" in result.output
        assert "10 endpoints, 8 models" in result.output

    def test_scan_missing(self, tmp_path: Path) -> None:
        """Missing packages exit with an error."""
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])
        assert result.exit_code == 1

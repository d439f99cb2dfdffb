"""Tests for the FastAPI web application."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from sourcefinder.errors import TransportError
from sourcefinder.index.search import SearchHit, SearchPage
from sourcefinder.models import RenderLine, RenderPlan
from sourcefinder.web.app import app

client = TestClient(app)


@pytest.fixture
def mock_store_class():
    with patch("sourcefinder.web.app.EngineStore") as store_class:
        yield store_class


class TestSearchEndpoint:
    """Tests for GET /search."""

    def test_empty_query(self, mock_store_class: MagicMock) -> None:
        """Empty query returns an empty page without touching the engine."""
        response = client.get("/search")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 0
        assert body["results"] == []
        mock_store_class.return_value.query.assert_not_called()

    @patch("sourcefinder.web.app.Searcher")
    def test_search_success(self, mock_searcher_class: MagicMock, mock_store_class: MagicMock) -> None:
        hit = SearchHit(
            id="glibc/malloc/malloc.c",
            score=20.0,
            score_percent=0.0,
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            n_matches=1,
            matched_lines=[4],
            explanation=None,
            plan=RenderPlan(
                lines=[RenderLine(line_no=4, text="realloc (void *p)", show=True, bold=True, band=0)],
                width=1,
                first_match=4,
            ),
        )
        mock_searcher_class.return_value.search.return_value = SearchPage(
            query="@glibc realloc", total=1, took=2, hits=[hit]
        )

        response = client.get("/search", params={"q": "@glibc realloc", "page": 1, "id": "x.c"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        result = body["results"][0]
        assert result["id"] == "glibc/malloc/malloc.c"
        assert result["first_match"] == 4
        assert result["lines"] == [{"line_no": 4, "text": "realloc (void *p)", "bold": True, "band": 0}]
        mock_searcher_class.return_value.search.assert_called_once_with(
            "@glibc realloc", page=1, doc_id="x.c"
        )
        mock_store_class.return_value.close.assert_called_once()

    def test_engine_failure_is_reported(self, mock_store_class: MagicMock) -> None:
        """Failures become total=-1 plus an error, not an HTTP error."""
        mock_store_class.return_value.query.side_effect = TransportError("engine down")

        response = client.get("/search", params={"q": "realloc"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == -1
        assert "engine down" in body["error"]


class TestStatusEndpoints:
    def test_status(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "git.status").write_text("Mon Jan 01 00:00:00 2024 linux abc\n")
        monkeypatch.setenv("SOURCEFINDER_SOURCE_ROOT", str(tmp_path))

        response = client.get("/status")

        assert response.status_code == 200
        assert "linux abc" in response.json()["status"]

    def test_stat(self, mock_store_class: MagicMock) -> None:
        mock_store_class.return_value.stat.return_value = {"sourcefinder": {"docs": 1}}

        response = client.get("/stat")

        assert response.status_code == 200
        assert response.json() == {"sourcefinder": {"docs": 1}}

    def test_stat_engine_down(self, mock_store_class: MagicMock) -> None:
        mock_store_class.return_value.stat.side_effect = TransportError("refused")

        response = client.get("/stat")

        assert response.status_code == 502
        assert "refused" in response.json()["detail"]

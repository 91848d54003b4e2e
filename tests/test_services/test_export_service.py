"""Unit Tests for Export Service"""

import asyncio

from vod_dashboard.models.catalog import CatalogItem
from vod_dashboard.services.export_service import (
    ExportResult,
    build_export,
    export_movies,
    render_commands,
    export_filename,
)


class TestBuildExport:
    """Test command generation for resolved items"""

    def test_one_command_per_item_in_order(self, xtream_client):
        items = [
            CatalogItem(stream_id=2, name="Second", container_extension="avi"),
            CatalogItem(stream_id=1, name="First"),
        ]

        result = build_export(xtream_client, items)

        assert result.exported == 2
        assert [c.movie_name for c in result.commands] == ["Second", "First"]
        assert result.commands[0].extension == "avi"
        assert result.commands[1].download_url.endswith("/movie/user/secret/1.mp4")
        assert result.commands[1].command == xtream_client.generate_aria2_command(items[1])
        assert [r.download_url for r in result.export_data] == [c.download_url for c in result.commands]

    def test_empty(self, xtream_client):
        result = build_export(xtream_client, [])
        assert result.commands == []
        assert result.export_data == []


class TestExportMovies:
    """Test bulk export with per-id results"""

    def test_partial_failure(self, xtream_client):
        """Two valid ids and one unknown id give two commands and one failure"""
        result = asyncio.run(export_movies(xtream_client, [101, 999, 103]))

        assert result.requested == 3
        assert result.exported == 2
        assert result.failed_ids == [999]
        assert [c.movie_name for c in result.commands] == ["Alpha", "Gamma"]
        assert [r.stream_id for r in result.results] == [101, 999, 103]
        assert result.results[1].success is False
        assert "not found" in result.results[1].error

    def test_remote_error_for_one_id(self, xtream_client, fake_http):
        """A failing lookup never fails the whole export"""
        fake_http.failing_stream_ids.add(102)

        result = asyncio.run(export_movies(xtream_client, [101, 102]))

        assert result.failed_ids == [102]
        assert "status: 500" in result.results[1].error
        assert result.exported == 1

    def test_unexpected_error_for_one_id(self, xtream_client, fake_http):
        """Errors outside the service taxonomy are isolated to their id too"""
        fake_http.stream_errors[102] = RuntimeError("boom")

        result = asyncio.run(export_movies(xtream_client, [101, 102, 103]))

        assert result.exported == 2
        assert result.failed_ids == [102]
        assert result.results[1].error == "boom"
        assert [c.movie_name for c in result.commands] == ["Alpha", "Gamma"]

    def test_all_resolved(self, xtream_client):
        result = asyncio.run(export_movies(xtream_client, [103, 101]))

        assert result.failed_ids == []
        assert [c.movie_name for c in result.commands] == ["Gamma", "Alpha"]
        assert result.commands[1].extension == "mkv"

    def test_invalid_id_reported(self, xtream_client, fake_http):
        result = asyncio.run(export_movies(xtream_client, [0]))

        assert result.failed_ids == [0]
        assert result.commands == []

    def test_to_dict(self, xtream_client):
        data = asyncio.run(export_movies(xtream_client, [101, 999])).to_dict()

        assert data["requested"] == 2
        assert data["exported"] == 1
        assert data["failedIds"] == [999]
        assert data["commands"][0].startswith("aria2c --continue")
        assert data["exportData"][0] == {
            "movieName": "Alpha",
            "extension": "mkv",
            "downloadUrl": "http://iptv.example.com:8080/movie/user/secret/101.mkv",
        }
        assert data["results"][0] == {"streamId": 101, "success": True, "error": None}


class TestRendering:
    """Test text artifact and file names"""

    def test_render_commands(self, xtream_client):
        result = build_export(xtream_client, [
            CatalogItem(stream_id=1, name="A"),
            CatalogItem(stream_id=2, name="B"),
        ])

        text = render_commands(result.commands)

        lines = text.splitlines()
        assert len(lines) == 2
        assert lines == result.command_lines
        assert text.endswith("\n")

    def test_render_empty(self):
        assert render_commands(ExportResult().commands) == ""

    def test_export_filename(self):
        assert export_filename() == "aria2c-commands.txt"
        assert export_filename("Alpha") == "Alpha-aria2c-commands.txt"
        assert export_filename("AC/DC: Live") == "AC_DC_ Live-aria2c-commands.txt"

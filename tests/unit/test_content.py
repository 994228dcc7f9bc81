"""Unit tests for media-type read planning and upload type inference."""

import pytest

from gdrive_mcp.drive.content import (
    ReadPlan,
    ReadStrategy,
    guess_upload_mime_type,
    plan_read,
)


@pytest.mark.unit
class TestPlanRead:
    """Tests for plan_read()."""

    @pytest.mark.parametrize(
        ("mime_type", "export_mime_type"),
        [
            ("application/vnd.google-apps.document", "text/markdown"),
            ("application/vnd.google-apps.spreadsheet", "text/csv"),
            ("application/vnd.google-apps.presentation", "text/plain"),
            ("application/vnd.google-apps.drawing", "image/png"),
            ("application/vnd.google-apps.form", "text/plain"),
        ],
    )
    def test_should_export_google_native_types(self, mime_type: str, export_mime_type: str) -> None:
        plan = plan_read(mime_type)

        assert plan.strategy == ReadStrategy.EXPORT
        assert plan.export_mime_type == export_mime_type

    @pytest.mark.parametrize(
        "mime_type", ["text/plain", "text/markdown", "text/csv", "application/json"]
    )
    def test_should_read_text_types_as_text(self, mime_type: str) -> None:
        assert plan_read(mime_type) == ReadPlan(strategy=ReadStrategy.RAW_TEXT)

    @pytest.mark.parametrize(
        "mime_type", ["image/png", "application/pdf", "application/octet-stream", ""]
    )
    def test_should_default_to_binary(self, mime_type: str) -> None:
        assert plan_read(mime_type) == ReadPlan(strategy=ReadStrategy.RAW_BINARY)

    def test_should_be_deterministic(self) -> None:
        assert plan_read("application/vnd.google-apps.document") == plan_read(
            "application/vnd.google-apps.document"
        )


@pytest.mark.unit
class TestGuessUploadMimeType:
    """Tests for guess_upload_mime_type()."""

    def test_should_infer_from_extension(self) -> None:
        assert guess_upload_mime_type("notes.txt") == "text/plain"
        assert guess_upload_mime_type("data.json") == "application/json"

    def test_should_fall_back_to_octet_stream(self) -> None:
        assert guess_upload_mime_type("README") == "application/octet-stream"
        assert guess_upload_mime_type("blob.unknownext") == "application/octet-stream"

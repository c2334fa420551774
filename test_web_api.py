"""Tests for the REST API."""

import pytest
from starlette.testclient import TestClient

from conftest import EXCALIDRAW_SVG
from mcp_brand_converter.pipeline import BrandingPipeline
from mcp_brand_converter.settings import Settings
from mcp_brand_converter.web import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(project_dir=tmp_path, uploads_dir=tmp_path / "uploads")


@pytest.fixture
def client(settings, brand, converter):
    return TestClient(create_app(settings, brand, converter))


def test_templates(client, brand):
    response = client.get("/api/templates")

    assert response.status_code == 200
    ids = [t["id"] for t in response.json()["templates"]]
    assert ids == list(brand.templates)


def test_health_reports_configuration_only(tmp_path, brand, converter):
    settings = Settings(
        project_dir=tmp_path,
        uploads_dir=tmp_path / "uploads",
        model_runner_url="http://unreachable.invalid",
    )
    client = TestClient(create_app(settings, brand, converter))

    body = client.get("/api/health").json()

    assert body["status"] == "healthy"
    assert body["services"] == {"modelRunner": "configured", "styleService": "not_configured"}


def test_convert_requires_file(client):
    response = client.post("/api/convert", data={"template": "excalidraw"})

    assert response.status_code == 400
    assert response.json() == {"message": "No file uploaded"}


def test_convert_rejects_unknown_output_format(client):
    response = client.post(
        "/api/convert",
        files={"file": ("diagram.svg", EXCALIDRAW_SVG.encode(), "image/svg+xml")},
        data={"outputFormat": "gif"},
    )

    assert response.status_code == 400


def test_convert_svg_upload(client, settings):
    response = client.post(
        "/api/convert",
        files={"file": ("diagram.svg", EXCALIDRAW_SVG.encode(), "image/svg+xml")},
        data={"template": "technical", "outputFormat": "svg"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["templateName"] == "technical"
    assert body["metadata"]["processMethod"] == "svg"
    assert body["inputFile"].endswith("-diagram.svg")
    assert body["outputFile"].endswith("-diagram-converted.svg")
    assert body["convertedUrl"].endswith(f"/uploads/converted/{body['outputFile']}")

    converted = settings.converted_dir / body["outputFile"]
    assert "#0066CC" in converted.read_text(encoding='utf-8')
    assert (settings.uploads_dir / body["inputFile"]).read_text(encoding='utf-8') == EXCALIDRAW_SVG

    served = client.get(f"/uploads/converted/{body['outputFile']}")
    assert served.status_code == 200


def test_convert_accepts_image_field_and_default_template(client):
    response = client.post(
        "/api/convert",
        files={"image": ("diagram.svg", EXCALIDRAW_SVG.encode(), "image/svg+xml")},
        data={"outputFormat": "svg"},
    )

    assert response.status_code == 200
    assert response.json()["metadata"]["templateApplied"] == "excalidraw"


def test_convert_unsupported_upload(client):
    response = client.post(
        "/api/convert",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Failed to process file"
    assert "Unsupported file type" in body["error"]


def test_convert_through_pipeline_falls_back_to_copy(settings, brand, converter):
    client = TestClient(create_app(settings, brand, BrandingPipeline(converter)))

    response = client.post(
        "/api/convert",
        files={"file": ("diagram.svg", EXCALIDRAW_SVG.encode(), "image/svg+xml")},
        data={"outputFormat": "svg"},
    )

    body = response.json()
    assert body["metadata"]["processMethod"] == "fallback-copy"
    assert (settings.converted_dir / body["outputFile"]).read_text(encoding='utf-8') == EXCALIDRAW_SVG


def test_same_name_uploads_in_one_millisecond_kept_apart(client, settings, monkeypatch):
    from types import SimpleNamespace

    from mcp_brand_converter import web

    monkeypatch.setattr(web, "time", SimpleNamespace(time=lambda: 1767225600.0))

    bodies = [
        client.post(
            "/api/convert",
            files={"file": ("diagram.svg", EXCALIDRAW_SVG.encode(), "image/svg+xml")},
            data={"outputFormat": "svg"},
        ).json()
        for _ in range(2)
    ]

    assert bodies[0]["inputFile"] != bodies[1]["inputFile"]
    assert bodies[0]["outputFile"] != bodies[1]["outputFile"]
    for body in bodies:
        assert body["inputFile"].startswith("1767225600000-")
        assert (settings.uploads_dir / body["inputFile"]).exists()
        assert (settings.converted_dir / body["outputFile"]).exists()

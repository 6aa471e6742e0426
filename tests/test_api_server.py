"""Tests for the HTTP API."""

import base64
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from convec.api import app


@pytest.fixture
def client():
    return TestClient(app)


def encode_png(array: np.ndarray) -> bytes:
    out = io.BytesIO()
    Image.fromarray(array).save(out, format="PNG")
    return out.getvalue()


def logo_png(width: int = 20, height: int = 20) -> bytes:
    """White image with a black square in the middle."""
    array = np.full((height, width, 3), 255, dtype=np.uint8)
    array[5:15, 5:15] = 0
    return encode_png(array)


def decode_response(content: bytes) -> np.ndarray:
    return np.array(Image.open(io.BytesIO(content)).convert("RGBA"))


def upload(data: bytes, name: str = "logo.png", mime: str = "image/png"):
    return {"image": (name, data, mime)}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_remove_background(client):
    """Test color removal returns a PNG with a transparent background."""
    response = client.post("/api/background/remove", files=upload(logo_png()))

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    pixels = decode_response(response.content)
    assert pixels[0, 0, 3] == 0
    assert pixels[10, 10, 3] == 255


def test_remove_background_unknown_method(client):
    response = client.post(
        "/api/background/remove",
        files=upload(logo_png()),
        data={"method": "magic"},
    )

    assert response.status_code == 400
    assert "Unknown method" in response.json()["detail"]


def test_remove_background_rejects_mime_type(client):
    response = client.post(
        "/api/background/remove",
        files=upload(b"GIF89a", name="a.gif", mime="image/gif"),
    )

    assert response.status_code == 400


def test_remove_background_rejects_corrupt_image(client):
    response = client.post("/api/background/remove", files=upload(b"garbage"))

    assert response.status_code == 400
    assert "Failed to load image" in response.json()["detail"]


def test_remove_background_tolerance_limit(client):
    response = client.post(
        "/api/background/remove",
        files=upload(logo_png()),
        data={"tolerance": "150"},
    )

    assert response.status_code == 400


def test_chroma_key(client):
    """Test green pixels are keyed out."""
    array = np.zeros((4, 4, 3), dtype=np.uint8)
    array[..., 1] = 255
    array[0, 0] = (255, 0, 0)

    response = client.post("/api/background/chroma-key", files=upload(encode_png(array)))

    assert response.status_code == 200
    pixels = decode_response(response.content)
    assert pixels[0, 0, 3] == 255
    assert pixels[1, 1, 3] == 0


def test_flood_fill(client):
    """Test flood fill from the seed point."""
    response = client.post(
        "/api/background/flood-fill",
        files=upload(logo_png()),
        data={"startX": "10", "startY": "10"},
    )

    assert response.status_code == 200
    pixels = decode_response(response.content)
    assert pixels[10, 10, 3] == 0
    assert pixels[0, 0, 3] == 255


def test_replace_with_color(client):
    """Test removed background is filled with the given color."""
    response = client.post(
        "/api/background/replace",
        files=upload(logo_png()),
        data={"backgroundColor": "#0000ff"},
    )

    assert response.status_code == 200
    pixels = decode_response(response.content)
    assert tuple(pixels[0, 0]) == (0, 0, 255, 255)
    assert tuple(pixels[10, 10]) == (0, 0, 0, 255)


def test_batch_reports_each_item(client):
    """Test a corrupt item fails alone and order is kept."""
    files = [
        ("images", ("a.png", logo_png(), "image/png")),
        ("images", ("b.png", b"broken", "image/png")),
        ("images", ("c.png", logo_png(), "image/png")),
    ]

    response = client.post("/api/background/batch", files=files)

    assert response.status_code == 200
    body = response.json()
    assert body["processed"] == 3
    assert [r["index"] for r in body["results"]] == [0, 1, 2]
    assert [r["success"] for r in body["results"]] == [True, False, True]
    assert body["results"][0]["filename"] == "processed_0.png"

    image = decode_response(base64.b64decode(body["results"][2]["data"]))
    assert image[0, 0, 3] == 0


def test_vectorize_returns_svg(client):
    """Test SVG output with a custom fill color."""
    response = client.post(
        "/api/vectorize",
        files=upload(logo_png()),
        data={"fillColor": "#ff0000"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert response.text.count("<path") == 1
    assert 'fill="#ff0000"' in response.text


def test_vectorize_path_data_scale(client):
    """Test path data response with scaled size."""
    response = client.post(
        "/api/vectorize/path-data",
        files=upload(logo_png()),
        data={"scale": "2", "optcurve": "false"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["width"] == 40
    assert body["height"] == 40
    assert body["path_count"] == 1
    assert body["path_data"].startswith("M 10 10")


def test_vectorize_invalid_scale(client):
    response = client.post(
        "/api/vectorize/path-data",
        files=upload(logo_png()),
        data={"scale": "0"},
    )

    assert response.status_code == 400


def test_process_complete(client):
    """Test removal followed by vectorization."""
    response = client.post("/api/process/complete", files=upload(logo_png()))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["processed_image"].startswith("data:image/png;base64,")
    assert body["svg"].startswith("<svg")
    assert body["path_count"] == 1
    assert body["width"] == 20


def test_decompression_bomb_is_bad_request(client, monkeypatch):
    """Test that an image over the pixel limit is rejected with 400."""
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

    response = client.post("/api/background/remove", files=upload(logo_png()))

    assert response.status_code == 400
    assert "Failed to load image" in response.json()["detail"]

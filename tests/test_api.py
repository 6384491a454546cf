"""
API integration tests for the dominant colors endpoints.

Tests:
- health and root routes
- standard and logo extraction from uploaded images
- parameter validation and error handling
- metrics counters
"""

import io

import numpy as np
import pytest
from PIL import Image


def encode_png(array: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def red_blue_png():
    """64x64 image, three quarters red and one quarter blue."""
    rgb = np.zeros((64, 64, 3), dtype=np.uint8)
    rgb[:48] = (255, 0, 0)
    rgb[48:] = (0, 0, 255)
    return encode_png(rgb)


@pytest.fixture
def logo_png():
    """32x32 RGBA logo: opaque red on the right, transparent green on the left."""
    rgba = np.zeros((32, 32, 4), dtype=np.uint8)
    rgba[:, :16] = (0, 255, 0, 0)
    rgba[:, 16:] = (255, 0, 0, 255)
    return encode_png(rgba)


class TestHealth:
    """Test service routes"""

    def test_healthz(self, test_client):
        response = test_client.get("/v1/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "dominant-colors"
        assert "version" in data

    def test_root(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


class TestDominantColorsEndpoint:
    """Test the /v1/dominant-colors endpoint"""

    def test_standard_variant(self, test_client, red_blue_png):
        response = test_client.post(
            "/v1/dominant-colors?bilateral_range_sigma=0",
            files={"file": ("palette.png", red_blue_png, "image/png")}
        )
        assert response.status_code == 200
        data = response.json()

        assert data["request_id"].startswith("dc-")
        assert [c["hex"] for c in data["colors"]] == ["#FF0000", "#0000FF"]
        assert data["colors"][0]["rgb"] == [255, 0, 0]
        assert data["colors"][0]["score"] == pytest.approx(0.75)
        assert data["colors"][1]["score"] == pytest.approx(0.25)

        debug = data["debug"]
        assert debug["variant"] == "standard"
        assert (debug["width"], debug["height"]) == (64, 64)
        assert debug["sampled_pixels"] == 64 * 64
        assert debug["configuration"]["num_hue_bins"] == 12
        assert set(debug["timing_ms"]) == {"decode", "preprocess", "extract", "total"}
        assert data["artifacts"] is None

    def test_logo_variant_ignores_transparent_background(self, test_client, logo_png):
        response = test_client.post(
            "/v1/dominant-colors?variant=logo",
            files={"file": ("logo.png", logo_png, "image/png")}
        )
        assert response.status_code == 200
        data = response.json()
        assert [c["hex"] for c in data["colors"]] == ["#FF0000"]
        assert data["colors"][0]["score"] == pytest.approx(1.0)
        assert data["debug"]["variant"] == "logo"
        assert data["debug"]["sampled_pixels"] == 32 * 16

    def test_logo_variant_ignores_opaque_background(self, test_client):
        rgb = np.full((64, 64, 3), 255, dtype=np.uint8)
        rgb[24:40, 24:40] = (255, 0, 0)
        response = test_client.post(
            "/v1/dominant-colors?variant=logo",
            files={"file": ("logo.png", encode_png(rgb), "image/png")}
        )
        assert response.status_code == 200
        data = response.json()
        hexes = [c["hex"] for c in data["colors"]]
        assert "#FFFFFF" not in hexes
        assert hexes == ["#FF0000"]
        assert data["colors"][0]["score"] == pytest.approx(1.0)
        assert data["debug"]["sampled_pixels"] == 16 * 16

    def test_include_swatch(self, test_client, red_blue_png):
        response = test_client.post(
            "/v1/dominant-colors?include_swatch=true&bilateral_range_sigma=0",
            files={"file": ("palette.png", red_blue_png, "image/png")}
        )
        assert response.status_code == 200
        assert response.json()["artifacts"]["swatch_png_b64"]

    def test_working_resolution_downscales(self, test_client, red_blue_png):
        response = test_client.post(
            "/v1/dominant-colors?max_working_resolution=32&bilateral_range_sigma=0",
            files={"file": ("palette.png", red_blue_png, "image/png")}
        )
        assert response.status_code == 200
        debug = response.json()["debug"]
        assert (debug["width"], debug["height"]) == (32, 32)

    def test_unsupported_media_type(self, test_client):
        response = test_client.post(
            "/v1/dominant-colors",
            files={"file": ("anim.gif", b"GIF89a" + b"\x00" * 32, "image/gif")}
        )
        assert response.status_code == 415

    def test_corrupt_upload(self, test_client):
        response = test_client.post(
            "/v1/dominant-colors",
            files={"file": ("broken.png", b"this is not an image", "image/png")}
        )
        assert response.status_code == 400

    def test_unknown_variant(self, test_client, red_blue_png):
        response = test_client.post(
            "/v1/dominant-colors?variant=poster",
            files={"file": ("palette.png", red_blue_png, "image/png")}
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("query", ["max_working_resolution=4", "bilateral_range_sigma=2"])
    def test_out_of_range_parameters(self, test_client, red_blue_png, query):
        response = test_client.post(
            f"/v1/dominant-colors?{query}",
            files={"file": ("palette.png", red_blue_png, "image/png")}
        )
        assert response.status_code == 422


class TestMetricsEndpoint:
    """Test metrics collection through the API"""

    def test_counters(self, test_client, red_blue_png):
        test_client.post(
            "/v1/dominant-colors?bilateral_range_sigma=0",
            files={"file": ("palette.png", red_blue_png, "image/png")}
        )
        test_client.post(
            "/v1/dominant-colors?variant=logo",
            files={"file": ("broken.png", b"this is not an image", "image/png")}
        )

        summary = test_client.get("/v1/metrics").json()
        counters = summary["counters"]
        assert counters["extract_requests_total"] == 2
        assert counters["extract_requests_total_standard"] == 1
        assert counters["extract_requests_total_logo"] == 1
        assert counters["extract_failed_total_http_400"] == 1
        assert summary["palette_size_stats"]["count"] == 1
        assert "total_duration_ms" in summary["timing_stats"]

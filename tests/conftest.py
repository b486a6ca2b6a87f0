"""
pytest configuration and fixtures.

Loads environment variables from .env file for all tests and provides
fake capabilities for the order pipeline.
"""

import json
import threading
from pathlib import Path

import pytest
from dotenv import load_dotenv
from PIL import Image

from wandini.utils.downloader import DownloadError


def pytest_configure(config):
    """Load .env file before running tests"""
    project_root = Path(__file__).parent.parent
    env_file = project_root / ".env"

    if env_file.exists():
        load_dotenv(env_file)


def write_png(path: Path, width: int, height: int) -> Path:
    """Write a gradient PNG so crops are distinguishable."""
    img = Image.new("RGB", (width, height))
    img.putdata(
        [(x % 256, y % 256, (x + y) % 256) for y in range(height) for x in range(width)]
    )
    img.save(path, format="PNG")
    return path


class FakeDownloader:
    """Writes a generated PNG instead of fetching over the network."""

    def __init__(self, width: int = 400, height: int = 300, fail_urls=()):
        self.width = width
        self.height = height
        self.fail_urls = set(fail_urls)
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch(self, url: str, dest: Path) -> Path:
        with self._lock:
            self.calls.append(url)
        if any(marker in url for marker in self.fail_urls):
            raise DownloadError(url, "HTTP 404", status_code=404)
        return write_png(Path(dest), self.width, self.height)


def make_order_payload(
    order_id=1001,
    master_asset_id="asset-1",
    crop_ratio=None,
    **extra_config,
) -> dict:
    """Build a Shopify-style paid order with a configurator property."""
    config = {
        "master_asset_id": master_asset_id,
        "crop_ratio": crop_ratio or {"x": 0.25, "y": 0.1, "w": 0.5, "h": 0.5},
        **extra_config,
    }
    return {
        "id": order_id,
        "email": "buyer@example.com",
        "currency": "EUR",
        "total_price": "49.00",
        "line_items": [
            {
                "title": "Custom print",
                "properties": [
                    {"name": "_size", "value": "A3"},
                    {"name": "configurator_payload", "value": json.dumps(config)},
                ],
            }
        ],
    }


@pytest.fixture
def fake_downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def order_payload() -> dict:
    return make_order_payload()


@pytest.fixture
def make_payload():
    """Factory for order payloads with custom configurator fields."""
    return make_order_payload


@pytest.fixture
def png_factory():
    """Factory writing gradient PNGs: png_factory(path, width, height)."""
    return write_png


@pytest.fixture
def failing_downloader() -> FakeDownloader:
    """Downloader that returns 404 for any asset id containing 'missing'."""
    return FakeDownloader(fail_urls={"missing"})

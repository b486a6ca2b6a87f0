"""Tests for order job models."""

import pytest
from pydantic import ValidationError

from wandini.models.order import CropRatio, OrderJob, OutputSize


class TestCropRatio:
    def test_create_crop_ratio(self):
        ratio = CropRatio(x=0.25, y=0.1, w=0.5, h=0.5)
        assert ratio.x + ratio.w <= 1

    def test_edges_touching_border(self):
        ratio = CropRatio(x=0.1, y=0.7, w=0.9, h=0.3)
        assert ratio.w == 0.9

    def test_exceeds_width(self):
        with pytest.raises(ValidationError):
            CropRatio(x=0.5, y=0.0, w=0.6, h=0.5)

    def test_exceeds_height(self):
        with pytest.raises(ValidationError):
            CropRatio(x=0.0, y=0.8, w=0.5, h=0.3)

    def test_frozen(self):
        ratio = CropRatio(x=0, y=0, w=1, h=1)
        with pytest.raises(ValidationError):
            ratio.x = 0.5


class TestOrderJob:
    def test_numeric_ids_coerced(self):
        job = OrderJob(
            order_id=5512345678901,
            master_asset_id=42,
            crop_ratio=CropRatio(x=0, y=0, w=1, h=1),
            total_price=49.5,
        )
        assert job.order_id == "5512345678901"
        assert job.master_asset_id == "42"
        assert job.total_price == "49.5"

    def test_optional_fields(self):
        job = OrderJob(
            order_id="1",
            master_asset_id="a",
            crop_ratio=CropRatio(x=0, y=0, w=1, h=1),
        )
        assert job.email is None
        assert job.output_size is None
        assert job.raw_payload == {}

    def test_master_url(self):
        job = OrderJob(
            order_id="1",
            master_asset_id="ma_7f3c2e",
            crop_ratio=CropRatio(x=0, y=0, w=1, h=1),
        )
        assert "ma_7f3c2e" in job.master_url
        assert job.master_url.endswith("master.png")

    def test_output_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            OutputSize(width=0, height=10)

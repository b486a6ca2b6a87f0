"""
Tests for per-job execution and the wired order pipeline.
"""

import xml.etree.ElementTree as ET
import zipfile
from unittest.mock import MagicMock

import pytest
from PIL import Image

from wandini.errors import ProcessingError
from wandini.models.job import OrderState, SubmitStatus
from wandini.storage.artifacts import ArtifactStore
from wandini.utils.image_codec import ImageCodec, ImageCodecError
from wandini.utils.normalize import normalize_order_payload
from wandini.worker.handlers import process_order_job
from wandini.worker.pipeline import OrderPipeline


@pytest.fixture
def store(artifact_dir) -> ArtifactStore:
    return ArtifactStore(artifact_dir)


class TestProcessOrderJob:
    def test_produces_all_artifacts(self, store, fake_downloader, order_payload):
        job = normalize_order_payload(order_payload)

        process_order_job(job, store, fake_downloader, ImageCodec())

        assert fake_downloader.calls == [job.master_url]
        assert store.master_path("1001").is_file()
        assert store.metadata_path("1001").is_file()

        # 400x300 master, crop {0.25, 0.1, 0.5, 0.5}
        with Image.open(store.cropped_path("1001")) as cropped:
            assert cropped.size == (200, 150)

        root = ET.parse(store.metadata_path("1001")).getroot()
        assert root.findtext("MasterAssetId") == "asset-1"

    def test_output_size_applied(self, store, fake_downloader, make_payload):
        job = normalize_order_payload(
            make_payload(output_size={"width": 64, "height": 48})
        )

        process_order_job(job, store, fake_downloader, ImageCodec())

        with Image.open(store.cropped_path("1001")) as cropped:
            assert cropped.size == (64, 48)

    def test_download_failure_leaves_no_directory(
        self, store, failing_downloader, make_payload
    ):
        job = normalize_order_payload(make_payload(master_asset_id="missing-1"))

        with pytest.raises(ProcessingError) as exc_info:
            process_order_job(job, store, failing_downloader, ImageCodec())

        assert exc_info.value.step == "fetch"
        assert not store.exists("1001")

    def test_codec_failure_leaves_no_directory(
        self, store, fake_downloader, order_payload
    ):
        job = normalize_order_payload(order_payload)
        codec = MagicMock()
        codec.read_dimensions.return_value = (400, 300)
        codec.extract.side_effect = ImageCodecError("encoder crashed")

        with pytest.raises(ProcessingError) as exc_info:
            process_order_job(job, store, fake_downloader, codec)

        assert exc_info.value.step == "crop"
        assert not store.exists("1001")

    def test_failure_leaves_no_staging_directories(
        self, store, failing_downloader, make_payload, artifact_dir
    ):
        job = normalize_order_payload(make_payload(master_asset_id="missing-1"))

        with pytest.raises(ProcessingError):
            process_order_job(job, store, failing_downloader, ImageCodec())

        assert list(artifact_dir.iterdir()) == []

    def test_complete_bundle_is_not_rerun(
        self, store, fake_downloader, order_payload
    ):
        job = normalize_order_payload(order_payload)
        process_order_job(job, store, fake_downloader, ImageCodec())
        metadata_before = store.metadata_path("1001").read_bytes()
        cropped_before = store.cropped_path("1001").read_bytes()

        order_payload["email"] = "changed@example.com"
        process_order_job(
            normalize_order_payload(order_payload), store, fake_downloader, ImageCodec()
        )

        assert len(fake_downloader.calls) == 1
        assert store.metadata_path("1001").read_bytes() == metadata_before
        assert store.cropped_path("1001").read_bytes() == cropped_before

    def test_failed_retry_keeps_incomplete_directory_untouched(
        self, store, failing_downloader, make_payload
    ):
        store.create("1001")
        store.metadata_path("1001").write_bytes(b"<Order/>")
        job = normalize_order_payload(make_payload(master_asset_id="missing-1"))

        with pytest.raises(ProcessingError):
            process_order_job(job, store, failing_downloader, ImageCodec())

        assert store.metadata_path("1001").read_bytes() == b"<Order/>"
        assert not store.cropped_path("1001").exists()

    def test_retry_replaces_incomplete_directory(
        self, store, fake_downloader, order_payload
    ):
        store.create("1001")
        store.metadata_path("1001").write_bytes(b"<Order/>")
        job = normalize_order_payload(order_payload)

        process_order_job(job, store, fake_downloader, ImageCodec())

        assert store.is_complete("1001")
        assert b"<OrderId>1001</OrderId>" in store.metadata_path("1001").read_bytes()

    def test_codec_receives_computed_rectangle(
        self, store, fake_downloader, order_payload
    ):
        job = normalize_order_payload(order_payload)
        codec = MagicMock()
        codec.read_dimensions.return_value = (4000, 3000)

        process_order_job(job, store, fake_downloader, codec)

        source, rect, dest, output_size = codec.extract.call_args.args
        assert source.name == "master.png"
        assert tuple(rect) == (1000, 300, 2000, 1500)
        assert dest.name == "cropped.png"
        # Written in the staging directory, not the final order directory
        assert dest.parent != store.order_dir("1001")
        assert output_size is None


@pytest.fixture
def pipeline(artifact_dir, fake_downloader):
    pipeline = OrderPipeline(artifact_dir, downloader=fake_downloader)
    pipeline.start()
    yield pipeline
    pipeline.stop(timeout=5)


class TestOrderPipeline:
    def test_end_to_end_bundle(self, pipeline, order_payload):
        job = normalize_order_payload(order_payload)

        assert pipeline.submit(job).status == SubmitStatus.ACCEPTED
        assert pipeline.queue.wait_until_idle(timeout=10)

        assert pipeline.state("1001") == OrderState.DONE
        assert pipeline.is_packageable("1001")
        with pipeline.package("1001") as bundle, zipfile.ZipFile(bundle) as zf:
            assert sorted(zf.namelist()) == ["cropped.png", "order.xml"]

    def test_idempotent_resubmission(self, pipeline, fake_downloader, order_payload):
        job = normalize_order_payload(order_payload)
        pipeline.submit(job)
        assert pipeline.queue.wait_until_idle(timeout=10)

        result = pipeline.submit(normalize_order_payload(order_payload))

        assert result.status == SubmitStatus.DUPLICATE
        assert pipeline.queue.wait_until_idle(timeout=10)
        assert len(fake_downloader.calls) == 1

    def test_failure_isolation(self, artifact_dir, failing_downloader, make_payload):
        pipeline = OrderPipeline(artifact_dir, downloader=failing_downloader)
        pipeline.start()
        try:
            a = normalize_order_payload(
                make_payload(order_id="A", master_asset_id="missing-a")
            )
            b = normalize_order_payload(make_payload(order_id="B"))

            pipeline.submit(a)
            pipeline.submit(b)
            assert pipeline.queue.wait_until_idle(timeout=10)

            assert pipeline.state("A") == OrderState.UNSEEN
            assert not pipeline.store.exists("A")
            assert pipeline.state("B") == OrderState.DONE
            assert pipeline.is_packageable("B")
        finally:
            pipeline.stop(timeout=5)

    def test_restart_does_not_rerun_completed_order(
        self, artifact_dir, fake_downloader, failing_downloader, make_payload
    ):
        """A fresh pipeline on the same directory treats the bundle as done."""
        first = OrderPipeline(artifact_dir, downloader=fake_downloader)
        first.start()
        try:
            first.submit(normalize_order_payload(make_payload()))
            assert first.queue.wait_until_idle(timeout=10)
        finally:
            first.stop(timeout=5)
        cropped_before = first.store.cropped_path("1001").read_bytes()

        restarted = OrderPipeline(artifact_dir, downloader=failing_downloader)
        restarted.start()
        try:
            restarted.submit(
                normalize_order_payload(make_payload(master_asset_id="missing-2"))
            )
            assert restarted.queue.wait_until_idle(timeout=10)

            assert failing_downloader.calls == []
            assert restarted.state("1001") == OrderState.DONE
            assert restarted.store.cropped_path("1001").read_bytes() == cropped_before
            assert "asset-1" in restarted.store.metadata_path("1001").read_text()
        finally:
            restarted.stop(timeout=5)

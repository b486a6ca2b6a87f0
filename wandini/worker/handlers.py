"""
Order job execution.

`process_order_job` runs the steps for one order on the worker thread:
fetch the master, write the metadata document, compute the crop rectangle
and extract the crop. Each attempt is built in a staging directory that
replaces the order directory only once every step has succeeded, so a
failure raises `ProcessingError` and leaves no partial artifacts behind.
Orders whose bundle is already complete on disk are not rerun.
"""

import logging
import shutil
from pathlib import Path
from typing import Protocol

from wandini.errors import ProcessingError
from wandini.models.order import OrderJob, OutputSize
from wandini.storage.artifacts import CROPPED_FILENAME, MASTER_FILENAME, ArtifactStore
from wandini.utils.downloader import DownloadError
from wandini.utils.geometry import CropRect, compute_crop_rect
from wandini.utils.image_codec import ImageCodecError

logger = logging.getLogger(__name__)


class DownloaderLike(Protocol):
    def fetch(self, url: str, dest): ...


class ImageCodecLike(Protocol):
    def read_dimensions(self, path) -> tuple[int, int]: ...

    def extract(
        self, source, rect: CropRect, dest, output_size: OutputSize | None = None
    ): ...


def _log_step(job: OrderJob, step: str, message: str, **fields) -> None:
    logger.info(
        "[%s] %s: %s",
        job.order_id,
        step,
        message,
        extra={"json_fields": {"order_id": job.order_id, "step": step, **fields}},
    )


def process_order_job(
    job: OrderJob,
    store: ArtifactStore,
    downloader: DownloaderLike,
    codec: ImageCodecLike,
) -> None:
    """
    Execute one order job.

    Args:
        job: Order to process
        store: Artifact directory owner
        downloader: Fetches the master image
        codec: Reads and crops images

    Raises:
        ProcessingError: If any step fails
    """
    if store.is_complete(job.order_id):
        # Completed before a restart; its artifacts must not be rewritten
        _log_step(job, "skip", "bundle already on disk")
        return

    try:
        work_dir = store.stage(job.order_id)
    except OSError as e:
        raise ProcessingError(job.order_id, "fetch", str(e)) from e

    try:
        _run_steps(job, work_dir, store, downloader, codec)
        final_dir = store.commit(job.order_id, work_dir)
    except OSError as e:
        raise ProcessingError(job.order_id, "commit", str(e)) from e
    finally:
        if work_dir.exists():
            shutil.rmtree(work_dir, ignore_errors=True)

    _log_step(job, "done", "artifacts ready", directory=str(final_dir))


def _run_steps(
    job: OrderJob,
    work_dir: Path,
    store: ArtifactStore,
    downloader: DownloaderLike,
    codec: ImageCodecLike,
) -> None:
    master_path = work_dir / MASTER_FILENAME
    cropped_path = work_dir / CROPPED_FILENAME

    # 1. Fetch
    _log_step(job, "fetch", f"downloading {job.master_url}")
    try:
        downloader.fetch(job.master_url, master_path)
    except (DownloadError, OSError) as e:
        raise ProcessingError(job.order_id, "fetch", str(e)) from e

    # 2. Metadata
    try:
        metadata_path = store.write_metadata(job, work_dir)
    except OSError as e:
        raise ProcessingError(job.order_id, "metadata", str(e)) from e
    _log_step(job, "metadata", f"wrote {metadata_path}")

    # 3. Geometry
    try:
        width, height = codec.read_dimensions(master_path)
        rect = compute_crop_rect(width, height, job.crop_ratio)
    except (ImageCodecError, OSError, ValueError) as e:
        raise ProcessingError(job.order_id, "crop", str(e)) from e
    _log_step(
        job,
        "crop",
        f"{width}x{height} -> {tuple(rect)}",
        width=width,
        height=height,
        rect=list(rect),
    )

    # 4. Extract
    try:
        codec.extract(master_path, rect, cropped_path, job.output_size)
    except (ImageCodecError, OSError, ValueError) as e:
        raise ProcessingError(job.order_id, "crop", str(e)) from e

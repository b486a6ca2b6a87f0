"""
Wiring of the order pipeline: artifact store, capabilities and job queue.
"""

import logging
from functools import partial
from pathlib import Path

from wandini.models.job import OrderState, SubmitResult
from wandini.models.order import OrderJob
from wandini.storage.artifacts import ArtifactStore
from wandini.utils.downloader import Downloader
from wandini.utils.image_codec import ImageCodec
from wandini.worker.handlers import process_order_job
from wandini.worker.queue import JobQueue

logger = logging.getLogger(__name__)


class OrderPipeline:
    """Accepts order jobs and serves their packaged artifacts."""

    def __init__(
        self,
        artifact_dir: str | Path,
        downloader=None,
        codec=None,
    ):
        self.store = ArtifactStore(artifact_dir)
        self.downloader = downloader or Downloader()
        self.codec = codec or ImageCodec()
        self.queue = JobQueue(
            partial(
                process_order_job,
                store=self.store,
                downloader=self.downloader,
                codec=self.codec,
            )
        )

    def start(self) -> None:
        self.store.base_dir.mkdir(parents=True, exist_ok=True)
        self.queue.start()

    def stop(self, timeout: float | None = 30.0) -> None:
        self.queue.stop(timeout)

    def submit(self, job: OrderJob) -> SubmitResult:
        return self.queue.submit(job)

    def state(self, order_id: str) -> OrderState:
        return self.queue.state(order_id)

    def is_packageable(self, order_id: str) -> bool:
        """
        Return True if the order's bundle may be served.

        Orders still queued or executing are never served; otherwise the
        artifact directory on disk decides, so bundles survive a restart.
        """
        return not self.queue.is_active(order_id) and self.store.exists(order_id)

    def package(self, order_id: str):
        return self.store.package(order_id)

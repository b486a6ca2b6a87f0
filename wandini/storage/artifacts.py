"""
Per-order artifact directories and zip packaging.

Layout under the base directory:

    {base_dir}/{order_id}/master.png   - downloaded master (not bundled)
    {base_dir}/{order_id}/cropped.png  - cropped output
    {base_dir}/{order_id}/order.xml    - order metadata document
"""

import json
import logging
import os
import shutil
import tempfile
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path
from typing import BinaryIO

from wandini.errors import ArtifactNotFoundError
from wandini.models.order import OrderJob

logger = logging.getLogger(__name__)

MASTER_FILENAME = "master.png"
CROPPED_FILENAME = "cropped.png"
METADATA_FILENAME = "order.xml"

# Files included in the downloadable bundle, in archive order
BUNDLE_FILENAMES = (METADATA_FILENAME, CROPPED_FILENAME)

# Attempts are built in hidden sibling directories and renamed into place
_STAGING_PREFIX = ".staging-"

# Bundles larger than this spill from memory to a temporary file
_SPOOL_MAX_BYTES = 16 * 1024 * 1024


def is_safe_order_id(order_id: str) -> bool:
    """Return True if the order id is usable as a single path segment."""
    if not order_id or order_id.startswith("."):
        return False
    return "/" not in order_id and "\\" not in order_id and "\x00" not in order_id


def order_to_xml(job: OrderJob) -> bytes:
    """
    Serialize a job's order context as the metadata XML document.

    The raw order payload is embedded as JSON text for audit.
    """
    root = ET.Element("Order")
    fields = [
        ("OrderId", job.order_id),
        ("MasterAssetId", job.master_asset_id),
        ("Email", job.email),
        ("TotalPrice", job.total_price),
        ("Currency", job.currency),
    ]
    for tag, value in fields:
        ET.SubElement(root, tag).text = "" if value is None else str(value)
    ET.SubElement(root, "RawPayload").text = json.dumps(
        job.raw_payload, ensure_ascii=False
    )

    ET.indent(root)
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


class ArtifactStore:
    """Owns the per-order artifact directories under a base path."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def order_dir(self, order_id: str) -> Path:
        if not is_safe_order_id(order_id):
            raise ArtifactNotFoundError(order_id)
        return self.base_dir / order_id

    def master_path(self, order_id: str) -> Path:
        return self.order_dir(order_id) / MASTER_FILENAME

    def cropped_path(self, order_id: str) -> Path:
        return self.order_dir(order_id) / CROPPED_FILENAME

    def metadata_path(self, order_id: str) -> Path:
        return self.order_dir(order_id) / METADATA_FILENAME

    def exists(self, order_id: str) -> bool:
        """Return True if an artifact directory exists for the order."""
        if not is_safe_order_id(order_id):
            return False
        return (self.base_dir / order_id).is_dir()

    def create(self, order_id: str) -> bool:
        """
        Create the artifact directory for an order.

        Returns:
            True if the directory was created by this call
        """
        path = self.order_dir(order_id)
        if path.is_dir():
            return False
        path.mkdir(parents=True, exist_ok=True)
        return True

    def discard(self, order_id: str) -> None:
        """Remove an order's artifact directory and everything in it."""
        path = self.order_dir(order_id)
        if path.is_dir():
            shutil.rmtree(path)
            logger.info("Discarded artifacts for order %s", order_id)

    def is_complete(self, order_id: str) -> bool:
        """Return True if the order directory holds every bundle file."""
        if not self.exists(order_id):
            return False
        order_dir = self.order_dir(order_id)
        return all((order_dir / name).is_file() for name in BUNDLE_FILENAMES)

    def stage(self, order_id: str) -> Path:
        """Create an empty staging directory for a processing attempt."""
        if not is_safe_order_id(order_id):
            raise ArtifactNotFoundError(order_id)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        return Path(
            tempfile.mkdtemp(prefix=f"{_STAGING_PREFIX}{order_id}-", dir=self.base_dir)
        )

    def commit(self, order_id: str, staging_dir: Path) -> Path:
        """
        Move a finished staging directory into place as the order directory.

        An incomplete directory left at the final path is replaced.
        """
        path = self.order_dir(order_id)
        if path.is_dir():
            shutil.rmtree(path)
        os.replace(staging_dir, path)
        return path

    def write_metadata(self, job: OrderJob, directory: Path | None = None) -> Path:
        """Write the order metadata document and return its path."""
        if directory is None:
            path = self.metadata_path(job.order_id)
        else:
            path = Path(directory) / METADATA_FILENAME
        path.write_bytes(order_to_xml(job))
        return path

    def package(self, order_id: str) -> BinaryIO:
        """
        Bundle the metadata document and the cropped image into a zip.

        The master image stays on disk and is not included. The archive is
        built on every call.

        Args:
            order_id: Order to package

        Returns:
            Binary file object positioned at the start of the archive;
            the caller is responsible for closing it

        Raises:
            ArtifactNotFoundError: If the directory or a bundle file is missing
        """
        if not self.is_complete(order_id):
            raise ArtifactNotFoundError(order_id)

        order_dir = self.order_dir(order_id)
        files = [order_dir / name for name in BUNDLE_FILENAMES]

        buffer = tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_BYTES)
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for f in files:
                    zf.write(f, arcname=f.name)
        except Exception:
            buffer.close()
            raise

        buffer.seek(0)
        return buffer

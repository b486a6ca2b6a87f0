"""
Service configuration loaded from environment variables.

Values are read once at import time; a local `.env` file is honoured.
"""

import os

from dotenv import load_dotenv

load_dotenv()

SERVICE_NAME = "wandini-orchestrator"

PORT = int(os.getenv("PORT", "10000"))

# Webhook verification is skipped when no secret is configured
SHOPIFY_WEBHOOK_SECRET = os.getenv("SHOPIFY_WEBHOOK_SECRET") or None

ARTIFACT_DIR = os.getenv("ARTIFACT_DIR", "/tmp/wandini")

MASTER_URL_TEMPLATE = os.getenv(
    "MASTER_URL_TEMPLATE",
    "https://storage.googleapis.com/wandini-masters/{master_asset_id}/master.png",
)

DOWNLOAD_PREFIX = os.getenv("DOWNLOAD_PREFIX", "wandini")

DOWNLOAD_TIMEOUT_SECONDS = float(os.getenv("DOWNLOAD_TIMEOUT_SECONDS", "30"))
DOWNLOAD_CHUNK_SIZE = int(os.getenv("DOWNLOAD_CHUNK_SIZE", str(1024 * 1024)))

# Upper bound on master image area; larger files are rejected before decoding
MAX_IMAGE_PIXELS = int(os.getenv("MAX_IMAGE_PIXELS", str(1_000_000_000)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

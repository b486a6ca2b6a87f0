"""
Wandini order worker.

Single background thread that executes order jobs one at a time:
- Download the master asset
- Write the order metadata document
- Crop the master into the deliverable image
"""

from wandini.worker.pipeline import OrderPipeline
from wandini.worker.queue import JobQueue

__all__ = ["JobQueue", "OrderPipeline"]

"""
Wandini order artifact service.

Turns paid-order webhooks into downloadable crop bundles.
"""

__version__ = "0.1.0"

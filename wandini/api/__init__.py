"""HTTP surface of the Wandini order service."""

"""Filesystem storage for per-order artifacts."""

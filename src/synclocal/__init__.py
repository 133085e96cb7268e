"""Idempotent local file synchronization from local paths and HTTP(S) URLs."""

__version__ = "0.3.0"

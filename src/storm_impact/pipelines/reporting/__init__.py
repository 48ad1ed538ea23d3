"""Reporting pipeline — ranked impact tables and comparison charts."""

from .pipeline import create_pipeline

__all__ = ["create_pipeline"]

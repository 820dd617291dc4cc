"""SWIP wellness score ingestion service."""

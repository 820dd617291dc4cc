"""Operational scripts: migrations, scheduled jobs and token issuance."""

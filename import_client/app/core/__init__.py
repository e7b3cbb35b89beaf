"""Shared core utilities for the import client."""

SERVICE_NAME = "import-client"

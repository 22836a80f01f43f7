"""Render OpenAPI schemas as Markdown property tables and sample payloads."""

from .utils.env import load_env

# Environment defaults from `.env` must be in place before `utils.config` is imported.
load_env()

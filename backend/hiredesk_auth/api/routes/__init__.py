"""API blueprint package bundling the HireDesk auth routes."""

from __future__ import annotations

from flask import Blueprint

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .auth import bp as auth_bp  # noqa: E402
from .files import bp as files_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_api_base)
REGISTRY: list[tuple[Blueprint, str]] = [
    (auth_bp, "/auth"),  # -> /api/auth
    (files_bp, "/files"),  # -> /api/files
]

# Mounted outside the API base so container healthchecks hit ``/health``.
ROOT_REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),
]

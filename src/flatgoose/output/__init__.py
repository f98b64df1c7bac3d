"""Output rendering for the CLI."""

from __future__ import annotations

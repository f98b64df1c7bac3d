"""Configuration — settings, config discovery, and logging."""

from __future__ import annotations

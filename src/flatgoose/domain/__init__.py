"""Domain layer — pure document-engine logic with no I/O."""

from __future__ import annotations

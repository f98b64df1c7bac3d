"""Infrastructure layer — collection files and the store context."""

from __future__ import annotations

"""Service layer — the Document Store and the model operation surface."""

from __future__ import annotations

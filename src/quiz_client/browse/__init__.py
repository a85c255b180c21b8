"""Read-only browsing of backend entity collections."""

from __future__ import annotations

from .controller import EntityListController, ListSource, ListState

__all__ = ["EntityListController", "ListSource", "ListState"]

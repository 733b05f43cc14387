"""Page objects and the page registry collaborator."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Protocol

from groq_extract.paths import normalize_path

PAGE_DATA_FIELD = "data"


@dataclass(slots=True, frozen=True)
class Page:
    """A generated page: route path, component file and context variables."""

    path: str
    component: str
    context: Mapping[str, object] = field(default_factory=dict)

    def with_data(self, data: object) -> Page:
        """Return a copy whose context carries ``data`` under the fixed field."""
        return replace(self, context={**self.context, PAGE_DATA_FIELD: data})

    def uses_component(self, component: str) -> bool:
        return normalize_path(self.component) == normalize_path(component)


class PageRegistry(Protocol):
    """Host page registry; replacing a page is delete followed by create."""

    def get_pages(self) -> Iterable[tuple[str, Page]]:
        """Enumerate registered pages as (path, page) pairs."""

    def delete_page(self, page: Page) -> None:
        """Remove a registered page."""

    def create_page(self, page: Page) -> None:
        """Register a page."""


class InMemoryPageRegistry:
    """Insertion-ordered page registry keyed by route path."""

    def __init__(self, pages: Iterable[Page] = ()) -> None:
        self._pages: dict[str, Page] = {}
        for page in pages:
            self.create_page(page)

    def get_pages(self) -> list[tuple[str, Page]]:
        return list(self._pages.items())

    def get(self, path: str) -> Page | None:
        return self._pages.get(path)

    def delete_page(self, page: Page) -> None:
        self._pages.pop(page.path, None)

    def create_page(self, page: Page) -> None:
        self._pages[page.path] = page


def load_pages(path: Path, root: Path) -> list[Page]:
    """Load ``[{path, component, context}]`` page definitions from JSON."""
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise ValueError(f"Pages file {path} must contain a JSON list.")
    pages: list[Page] = []
    for item in payload:
        if not isinstance(item, dict):
            raise ValueError(f"Pages file {path} must contain only objects.")
        route = item.get("path")
        component = item.get("component")
        context = item.get("context", {})
        if not isinstance(route, str) or not isinstance(component, str):
            raise ValueError("Each page needs string 'path' and 'component' fields.")
        if not isinstance(context, dict):
            raise ValueError(f"Page '{route}' context must be an object.")
        pages.append(
            Page(path=route, component=normalize_path(root / component), context=context)
        )
    return pages

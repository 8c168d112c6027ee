from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Tuple

from ..models.records import ParsedSource


class ParserAdapter(ABC):
    """Front end that turns one language's source text into record declarations."""

    language: str
    suffixes: Tuple[str, ...] = ()

    @abstractmethod
    def parse(self, source: str, path: Path) -> ParsedSource:
        """Return the type declarations and syntax errors found in ``source``."""


class ParserRegistry:
    """Front ends keyed by file suffix."""

    def __init__(self, *adapters: ParserAdapter) -> None:
        self._by_suffix: Dict[str, ParserAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ParserAdapter) -> None:
        for suffix in adapter.suffixes or (f".{adapter.language}",):
            self._by_suffix[suffix.lower()] = adapter

    def for_path(self, path: Path) -> ParserAdapter:
        suffix = path.suffix.lower()
        adapter = self._by_suffix.get(suffix)
        if adapter is None:
            raise ValueError(f"No parser registered for {suffix or path.name!r} files")
        return adapter

"""Configuration types for page file scanning."""

from __future__ import annotations

from dataclasses import dataclass, field

from pageroots.page_scanner.defaults import DEFAULT_EXCLUDES, DEFAULT_PAGE_FILES


@dataclass
class ScannerConfig:
    """
    Configuration for page file scanning.

    `exclude=None` means use `DEFAULT_EXCLUDES`; providing a list replaces them entirely.
    """

    page_files: list[str] = field(default_factory=lambda: list(DEFAULT_PAGE_FILES))
    exclude: list[str] | None = None
    extend_exclude: list[str] = field(default_factory=list)
    respect_gitignore: bool = True

    @property
    def effective_exclude(self) -> list[str]:
        """Combined exclude patterns: defaults (or `exclude`) + `extend_exclude`."""
        base = self.exclude if self.exclude is not None else list(DEFAULT_EXCLUDES)
        return base + self.extend_exclude

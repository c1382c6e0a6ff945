"""Exceptions raised by the Filament documentation cache."""


class DocsError(Exception):
    """Base class for documentation cache errors."""


class ContentSourceError(DocsError):
    """Raised when a remote fetch fails after all retry attempts."""

    def __init__(self, message: str, last_exception: Exception | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


class UnknownSectionError(DocsError, ValueError):
    """Raised when a section title does not map to a known category."""

    def __init__(self, section: str) -> None:
        super().__init__(f"Unknown section: {section}")
        self.section = section


class UnclassifiablePathError(DocsError, ValueError):
    """Raised when a remote path cannot be mapped to a section."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot classify documentation path: {path}")
        self.path = path

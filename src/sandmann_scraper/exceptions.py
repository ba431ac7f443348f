"""Custom exceptions for sandmann_scraper.

Every failure aborts the run; nothing in the pipeline retries. The messages
name the offending selector, field, or URL so that a change in the upstream
page or API format can be diagnosed from the log alone.

Exception Hierarchy:
    SandmannError (base)
    ├── AmbiguousEpisodeError - Not exactly one teaser link on the landing page
    ├── MalformedDescriptorError - Media descriptor lacks the expected structure
    ├── FetchError - Landing page or descriptor could not be retrieved
    └── TransferError - Stream bytes could not be written to the destination
        └── StorageDependencyError - Optional storage backend not installed
"""

from typing import List, Optional


class SandmannError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        stage: Pipeline stage that failed (e.g., "locate", "descriptor")
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
    """

    def __init__(
        self,
        message: str,
        stage: str = "pipeline",
        suggestion: Optional[str] = None,
    ) -> None:
        self.stage = stage
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with stage and suggestion."""
        parts = [f"[{self.stage}] {self.message}"]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " ".join(parts)


class AmbiguousEpisodeError(SandmannError):
    """Raised when the landing page does not yield exactly one episode link.

    Both zero and several candidates are treated the same way: the page no
    longer matches the one-teaser-per-day layout, and picking any link would
    risk downloading the wrong episode.

    Example:
        >>> raise AmbiguousEpisodeError(
        ...     selector='[data-media-ref*="/filme"]',
        ...     marker="automaticteaser.mediajsn.jsn",
        ...     candidates=[],
        ... )
    """

    def __init__(
        self,
        selector: str,
        marker: str,
        candidates: Optional[List[str]] = None,
    ) -> None:
        self.selector = selector
        self.marker = marker
        self.candidates = list(candidates or [])
        message = (
            f"Expected exactly one episode link matching {selector} "
            f"containing {marker!r}, found {len(self.candidates)}"
        )
        if self.candidates:
            message = f"{message}: {', '.join(self.candidates)}"
        super().__init__(
            message=message,
            stage="locate",
            suggestion="The landing page layout may have changed",
        )


class MalformedDescriptorError(SandmannError):
    """Raised when the media descriptor lacks the expected nested structure.

    Attributes:
        field: Descriptor key that was missing or had the wrong shape
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        if field and field not in message:
            message = f"{message} (field: {field})"
        super().__init__(message=message, stage="descriptor")


class FetchError(SandmannError):
    """Raised when a page or descriptor could not be fetched."""

    def __init__(self, url: str, reason: Optional[str] = None) -> None:
        self.url = url
        message = f"Failed to fetch {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message=message, stage="fetch")


class TransferError(SandmannError):
    """Raised when stream bytes could not be transferred to the destination."""

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.target = target
        if target and target not in message:
            message = f"{message} (target: {target})"
        super().__init__(message=message, stage="transfer", suggestion=suggestion)


class StorageDependencyError(TransferError):
    """Raised when the object-storage backend library is not installed.

    Example:
        >>> raise StorageDependencyError(dependency="boto3")
    """

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency
        super().__init__(
            message=f"Object storage requires the {dependency!r} package",
            suggestion="Install with: pip install 'sandmann-scraper[s3]'",
        )

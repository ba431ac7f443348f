from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Optional


@dataclass
class LandingPageLink:
    """A teaser link found on the landing page.

    Attributes:
        media_ref: Raw value of the media reference attribute (relative or absolute URL).
        title: Title from the nested image element, possibly empty.
    """

    media_ref: str
    title: str = ""


@dataclass(frozen=True)
class ResolvedEpisode:
    """Today's episode as found on the landing page.

    Attributes:
        descriptor_url: Absolute URL of the episode's media descriptor document.
        title: Display title of the episode (may be empty).

    Example:
        >>> episode = ResolvedEpisode(
        ...     descriptor_url="https://www.sandmann.de/filme/x~automaticteaser.mediajsn.jsn",
        ...     title="Good Night Story (Quelle: rbb)",
        ... )
    """

    descriptor_url: str
    title: str


@total_ordering
@dataclass(frozen=True)
class StreamQuality:
    """Quality of a single stream entry.

    Either a fixed numeric quality or automatic (adaptive). Every automatic
    quality ranks below every numeric quality; automatic qualities compare
    equal to each other.
    """

    value: Optional[int] = None

    @classmethod
    def numeric(cls, value: int) -> "StreamQuality":
        return cls(value=int(value))

    @classmethod
    def automatic(cls) -> "StreamQuality":
        return cls(value=None)

    @property
    def is_automatic(self) -> bool:
        return self.value is None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, StreamQuality):
            return NotImplemented
        if self.value is None:
            return other.value is not None
        if other.value is None:
            return False
        return self.value < other.value

    def __str__(self) -> str:
        return "auto" if self.value is None else str(self.value)


@dataclass(frozen=True)
class StreamEntry:
    """One entry of a descriptor's stream array."""

    quality: StreamQuality
    stream_url: Optional[str]
    index: int


@dataclass(frozen=True)
class TransferResult:
    """Outcome of handing a stream to a destination.

    Attributes:
        destination: Local path or object URI the stream was written to.
        bytes_transferred: Number of bytes written (0 when skipped).
        skipped: True when an existing target was left untouched.
    """

    destination: str
    bytes_transferred: int = 0
    skipped: bool = False

"""Landing page parsing and today's-episode lookup."""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from . import config_constants, models
from .exceptions import AmbiguousEpisodeError

logger = logging.getLogger(__name__)


def parse_landing_page(html: str | bytes) -> BeautifulSoup:
    """Parse landing page HTML into a queryable document."""
    return BeautifulSoup(html, "html.parser")


def media_ref_selector(
    attribute: str = config_constants.MEDIA_REF_ATTRIBUTE,
    fragment: str = config_constants.VIDEO_SECTION_FRAGMENT,
) -> str:
    """Build the CSS selector matching elements that point into the video section."""
    return f'[{attribute}*="{fragment}"]'


def _image_title(element: Tag) -> str:
    """Return the title of the first nested image that carries one, or ""."""
    image = element.find("img", attrs={"title": True})
    if image is None:
        return ""
    title = image.get("title")
    return str(title) if title is not None else ""


def find_candidate_links(
    document: BeautifulSoup,
    *,
    attribute: str = config_constants.MEDIA_REF_ATTRIBUTE,
    fragment: str = config_constants.VIDEO_SECTION_FRAGMENT,
    marker: str = config_constants.DAILY_TEASER_MARKER,
) -> List[models.LandingPageLink]:
    """Collect distinct daily-teaser links from a landing page.

    Several elements often point at the same link (teaser image, caption,
    play button); they collapse into one candidate keyed by the raw attribute
    value. The first element seen for a value provides the title.

    Args:
        document: Parsed landing page
        attribute: Name of the media reference attribute
        fragment: Path fragment identifying the video section
        marker: Substring identifying the automatic daily teaser descriptor

    Returns:
        Candidate links in document order
    """
    selector = media_ref_selector(attribute, fragment)
    elements = document.select(selector)
    logger.debug("Selector %s matched %d element(s)", selector, len(elements))

    seen = set()
    distinct: List[Tag] = []
    for element in elements:
        ref = str(element.get(attribute, ""))
        if ref in seen:
            continue
        seen.add(ref)
        distinct.append(element)

    candidates = [
        models.LandingPageLink(media_ref=str(el.get(attribute, "")), title=_image_title(el))
        for el in distinct
        if marker in str(el.get(attribute, ""))
    ]
    logger.debug(
        "%d distinct link(s), %d daily teaser candidate(s)", len(distinct), len(candidates)
    )
    return candidates


def locate(
    document: BeautifulSoup,
    base_url: str = config_constants.DEFAULT_LANDING_PAGE_URL,
    *,
    attribute: str = config_constants.MEDIA_REF_ATTRIBUTE,
    fragment: str = config_constants.VIDEO_SECTION_FRAGMENT,
    marker: str = config_constants.DAILY_TEASER_MARKER,
) -> models.ResolvedEpisode:
    """Find the descriptor URL and title of today's episode.

    Args:
        document: Parsed landing page
        base_url: URL the landing page was fetched from, used to resolve relative links

    Returns:
        ResolvedEpisode with an absolute descriptor URL and the (possibly empty) title

    Raises:
        AmbiguousEpisodeError: If not exactly one candidate link remains
    """
    candidates = find_candidate_links(
        document, attribute=attribute, fragment=fragment, marker=marker
    )
    if len(candidates) != 1:
        raise AmbiguousEpisodeError(
            selector=media_ref_selector(attribute, fragment),
            marker=marker,
            candidates=[c.media_ref for c in candidates],
        )

    link = candidates[0]
    descriptor_url = urljoin(base_url, link.media_ref.strip())
    if not link.title:
        logger.info("Episode link %s has no title", descriptor_url)
    return models.ResolvedEpisode(descriptor_url=descriptor_url, title=link.title)


__all__ = [
    "parse_landing_page",
    "media_ref_selector",
    "find_candidate_links",
    "locate",
]

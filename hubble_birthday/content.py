"""HTML extraction rules for image detail pages.

Every assumption about the remote markup lives in this module: the label
vocabulary for the key/value facts list, the "Downloads" heading, the asset
link shape and the article selectors. Each rule takes a parsed document and
returns ``None`` (or an empty list) when its element is absent.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .models import AssetDescriptor, NarrativeFields, PageFields

# Checked in order; the first label fragment contained in an item's label wins.
LABEL_VOCABULARY: Tuple[Tuple[str, str], ...] = (
    ("object name", "object_name"),
    ("object description", "object_description"),
    ("release date", "release_date"),
    ("r.a. position", "ra_position"),
    ("dec. position", "dec_position"),
    ("constellation", "constellation"),
    ("distance", "distance"),
    ("instrument", "instrument"),
    ("exposure date", "exposure_dates"),
    ("filter", "filters"),
    ("credit", "credit"),
)

DOWNLOADS_HEADING = "Downloads"
ASSET_LINK_FRAGMENT = "/asset/"
TAG_LINK_FRAGMENTS = ("/category/", "/universe/")
MIN_PARAGRAPH_CHARS = 50
SCIENCE_RELEASE_MARKER = "Science Release"
READ_RELEASE_MARKER = "Read the release"
COLOR_MARKERS = ("Color Info", "assigned colors")

_SIZE_PATTERN = re.compile(r"\(([^)]+)\)")
_RESOLUTION_PATTERN = re.compile(r"(\d+)\s*[x×]\s*(\d+)")
_COLOR_PATTERN = re.compile(r"assigned colors are[:\s]*(.*)", re.IGNORECASE)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(tag: Optional[Tag]) -> Optional[str]:
    if tag is None:
        return None
    return tag.get_text().strip()


def _absolute(base_url: str, href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    try:
        return urljoin(base_url, href.strip())
    except ValueError:
        return None


def extract_page_title(soup: BeautifulSoup) -> Optional[str]:
    return _text(soup.find("h1"))


def extract_page_description(soup: BeautifulSoup) -> Optional[str]:
    return _text(soup.select_one("article p"))


def classify_label(label: str) -> Optional[str]:
    """Return the field name for a facts-list label, if it is one we keep."""
    lowered = label.lower()
    for fragment, field_name in LABEL_VOCABULARY:
        if fragment in lowered:
            return field_name
    return None


def iter_labelled_values(soup: BeautifulSoup) -> Iterable[Tuple[str, str]]:
    """Yield ``(label, value)`` pairs from list items shaped as label + values.

    The first ``div`` inside the item is the label and the last one is the
    value. Items whose value repeats the label are containers, not pairs.
    """
    for item in soup.find_all("li"):
        divs = item.find_all("div")
        if len(divs) < 2:
            continue
        label = divs[0].get_text().strip()
        value = divs[-1].get_text().strip()
        if label and value and label.lower() != value.lower():
            yield label, value


def extract_facts(soup: BeautifulSoup) -> Dict[str, str]:
    facts: Dict[str, str] = {}
    for label, value in iter_labelled_values(soup):
        field_name = classify_label(label)
        if field_name:
            facts[field_name] = value
    return facts


def _find_downloads_list(soup: BeautifulSoup) -> Optional[Tag]:
    heading = None
    for candidate in soup.find_all("h3"):
        if candidate.get_text().strip() == DOWNLOADS_HEADING:
            heading = candidate
            break
    if heading is None:
        return None
    for sibling in heading.find_next_siblings():
        if sibling.name in ("ul", "ol"):
            return sibling
    return None


def parse_asset_item(item: Tag, base_url: str) -> Optional[AssetDescriptor]:
    """Describe one "Downloads" list item, or ``None`` if it has no link."""
    link = item.find("a")
    if link is None:
        return None
    url = _absolute(base_url, link.get("href"))
    if not url:
        return None
    text = item.get_text()
    size_match = _SIZE_PATTERN.search(text)
    res_match = _RESOLUTION_PATTERN.search(text)
    return AssetDescriptor(
        url=url,
        kind="pdf" if "pdf" in text.lower() else "jpg",
        size=size_match.group(1) if size_match else None,
        resolution=f"{res_match.group(1)}x{res_match.group(2)}" if res_match else None,
    )


def extract_downloads(soup: BeautifulSoup, base_url: str) -> List[AssetDescriptor]:
    container = _find_downloads_list(soup)
    if container is None:
        return []
    assets: List[AssetDescriptor] = []
    for item in container.find_all("li"):
        asset = parse_asset_item(item, base_url)
        if asset is not None:
            assets.append(asset)
    return assets


def find_asset_link(html: str, base_url: str) -> Optional[str]:
    """Locate the first link to a standalone asset page (news-style pages)."""
    soup = parse_html(html)
    for link in soup.find_all("a", href=True):
        url = _absolute(base_url, link["href"])
        if url and ASSET_LINK_FRAGMENT in url:
            return url
    return None


def extract_page_fields(html: str, base_url: str) -> PageFields:
    """Run the metadata pass over a rendered detail page."""
    soup = parse_html(html)
    fields = PageFields(
        page_title=extract_page_title(soup),
        page_description=extract_page_description(soup),
        downloads=extract_downloads(soup, base_url),
    )
    for field_name, value in extract_facts(soup).items():
        setattr(fields, field_name, value)
    return fields


def extract_paragraphs(soup: BeautifulSoup) -> List[str]:
    paragraphs = []
    for paragraph in soup.select("article p"):
        text = paragraph.get_text().strip()
        if len(text) > MIN_PARAGRAPH_CHARS:
            paragraphs.append(text)
    return paragraphs


def extract_tags(soup: BeautifulSoup, base_url: str) -> List[str]:
    tags: List[str] = []
    for link in soup.find_all("a", href=True):
        url = _absolute(base_url, link["href"]) or ""
        if not any(fragment in url for fragment in TAG_LINK_FRAGMENTS):
            continue
        label = link.get_text().strip()
        if label and label not in tags:
            tags.append(label)
    return tags


def extract_science_release(soup: BeautifulSoup) -> Optional[str]:
    for item in soup.find_all("li"):
        text = item.get_text()
        if SCIENCE_RELEASE_MARKER in text:
            text = text.replace(SCIENCE_RELEASE_MARKER, "", 1)
            text = text.replace(READ_RELEASE_MARKER, "", 1).strip()
            return text or None
    return None


def extract_color_info(soup: BeautifulSoup) -> Optional[str]:
    for block in soup.find_all(["div", "p"]):
        text = block.get_text()
        if any(marker in text for marker in COLOR_MARKERS):
            match = _COLOR_PATTERN.search(text)
            return match.group(1).strip() if match else None
    return None


def extract_main_image(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    image = soup.select_one('article img[src*="hubble"]') or soup.select_one("article img")
    if image is None:
        return None
    return _absolute(base_url, image.get("src"))


def extract_narrative(html: str, base_url: str) -> NarrativeFields:
    """Run the narrative pass used by the enrichment stage."""
    soup = parse_html(html)
    return NarrativeFields(
        title=extract_page_title(soup),
        paragraphs=extract_paragraphs(soup),
        tags=extract_tags(soup, base_url),
        science_release=extract_science_release(soup),
        color_info=extract_color_info(soup),
        main_image_url=extract_main_image(soup, base_url),
    )

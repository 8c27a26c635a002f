"""
Parser for people-search result pages

Works on a page.content() snapshot so it can be exercised against saved
HTML. Result cards are located with an ordered list of patterns and each
field is read through a strategy cascade (current markup first, older
markup as fallback). When no card pattern matches at all, a raw scan of
profile anchors is used instead.
"""

import logging
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from talent_scraper.models import ProfileSummary
from talent_scraper.scraper.strategies import (
    Strategy,
    first_match,
    is_within,
    select_attr,
    select_text,
    visible_text,
)
from talent_scraper.utils.helpers import absolute_url, canonical_profile_url, clean_text

logger = logging.getLogger(__name__)

# Ordered: cards from the current layout first
RESULT_ITEM_PATTERNS = [
    'li.reusable-search__result-container',
    'div[data-chameleon-result-urn]',
    'div[data-view-name="search-entity-result-universal-template"]',
    'li.search-result',
    'div.entity-result',
    'li.artdeco-list__item',
]

NO_RESULTS_SELECTORS = [
    '.search-reusable-search-no-results',
    '.artdeco-empty-state',
    '[data-test-search-no-results]',
]
NO_RESULTS_PHRASES = ['no results found', 'nenhum resultado encontrado']

PLACEHOLDER_NAMES = ('linkedin member', 'membro do linkedin')

PHOTO_SELECTORS = (
    'img.presence-entity__image',
    '.entity-result__image img',
    'img[src*="profile-displayphoto"]',
)


def _name_and_link(anchor_selector: str):
    def extract(item: Tag) -> Optional[Tuple[str, str]]:
        for anchor in item.select(anchor_selector):
            url = canonical_profile_url(anchor.get('href'))
            name = visible_text(anchor)
            if url and name:
                return name, url
        return None
    return extract


def _first_line_anchor(item: Tag) -> Optional[Tuple[str, str]]:
    for anchor in item.select('a[href*="/in/"]'):
        url = canonical_profile_url(anchor.get('href'))
        if not url:
            continue
        lines = [clean_text(s) for s in anchor.get_text('\n').split('\n')]
        lines = [line for line in lines if line]
        if lines:
            return lines[0], url
    return None


NAME_LINK_STRATEGIES = [
    Strategy('title-text', _name_and_link('.entity-result__title-text a[href]')),
    Strategy('universal-template', _name_and_link('a[data-test-app-aware-link][href*="/in/"]')),
    Strategy('app-aware-link', _name_and_link('a.app-aware-link[href*="/in/"]')),
    Strategy('first-anchor', _first_line_anchor),
]

HEADLINE_STRATEGIES = [
    Strategy('primary-subtitle', select_text('.entity-result__primary-subtitle')),
    Strategy('universal-template', select_text('div.t-14.t-black.t-normal')),
    Strategy('legacy-subline', select_text('.subline-level-1')),
]

LOCATION_STRATEGIES = [
    Strategy('secondary-subtitle', select_text('.entity-result__secondary-subtitle')),
    Strategy('universal-template', select_text('div.t-14.t-normal:not(.t-black)')),
    Strategy('legacy-subline', select_text('.subline-level-2')),
]

PHOTO_STRATEGIES = [
    Strategy(f'img:{selector}', select_attr('src', selector)) for selector in PHOTO_SELECTORS
]

SUMMARY_STRATEGIES = [
    Strategy('summary', select_text('.entity-result__summary', 'p.entity-result__summary--2-lines')),
]


def find_result_items(soup: BeautifulSoup) -> List[Tag]:
    """
    Apply every card pattern in order and drop duplicate matches

    A card matched by two patterns, or nested inside an already-selected
    card, is only kept once.
    """
    selected: List[Tag] = []
    for pattern in RESULT_ITEM_PATTERNS:
        for node in soup.select(pattern):
            if any(node is s for s in selected):
                continue
            if is_within(node, selected):
                continue
            if any(is_within(s, [node]) for s in selected):
                continue
            selected.append(node)
    return selected


def _photo(item: Tag) -> Optional[str]:
    src = first_match(PHOTO_STRATEGIES, item)
    return absolute_url(src) if src else None


def parse_result_item(item: Tag) -> Optional[ProfileSummary]:
    """Summary for one card, or None for non-person/restricted cards"""
    name_link = first_match(NAME_LINK_STRATEGIES, item)
    if not name_link:
        return None
    name, url = name_link
    if name.lower() in PLACEHOLDER_NAMES:
        return None

    return ProfileSummary(
        display_name=name,
        headline=first_match(HEADLINE_STRATEGIES, item) or "",
        profile_url=url,
        location=first_match(LOCATION_STRATEGIES, item),
        photo_url=_photo(item),
        summary=first_match(SUMMARY_STRATEGIES, item),
    )


def parse_anchor_fallback(soup: BeautifulSoup) -> List[ProfileSummary]:
    """Scan raw /in/ anchors when no card pattern matched"""
    results: List[ProfileSummary] = []
    seen = set()

    for anchor in soup.select('a[href*="/in/"]'):
        url = canonical_profile_url(anchor.get('href'))
        if not url or url in seen:
            continue
        lines = [clean_text(s) for s in anchor.get_text('\n').split('\n')]
        lines = [line for line in lines if line]
        if not lines or len(lines[0]) <= 2 or lines[0].lower() in PLACEHOLDER_NAMES:
            continue
        seen.add(url)
        results.append(ProfileSummary(
            display_name=lines[0],
            headline="",
            profile_url=url,
            photo_url=_nearby_photo(anchor, url),
        ))
    return results


def _nearby_photo(anchor: Tag, url: str) -> Optional[str]:
    """
    Look for a profile photo in up to six ancestors of the anchor

    Stops before an ancestor that also holds another person's link, since
    that means we have climbed out of this card into the result list.
    """
    current = anchor
    for _ in range(6):
        parent = current.parent
        if parent is None or not isinstance(parent, Tag):
            break
        other_links = [
            a for a in parent.select('a[href*="/in/"]')
            if canonical_profile_url(a.get('href')) not in (None, url)
        ]
        if other_links:
            break
        current = parent
        img = current.select_one(
            'img[src*="profile-displayphoto"], img.presence-entity__image, img.ghost-person'
        )
        if img is not None:
            src = img.get('src') or ''
            if len(src) > 50 and not src.startswith('data:'):
                return absolute_url(src)
    return None


def parse_search_results(html: str) -> List[ProfileSummary]:
    """All person summaries on the page, unique by profile_url, in page order"""
    soup = BeautifulSoup(html, 'html.parser')
    items = find_result_items(soup)
    logger.debug(f"Found {len(items)} candidate result cards")

    summaries = [s for s in (parse_result_item(item) for item in items) if s]
    if not summaries:
        logger.info("[INFO] No structured results, trying raw profile-link fallback")
        summaries = parse_anchor_fallback(soup)

    return dedupe_summaries(summaries)


def dedupe_summaries(summaries: List[ProfileSummary]) -> List[ProfileSummary]:
    seen = set()
    unique = []
    for summary in summaries:
        if summary.profile_url in seen:
            continue
        seen.add(summary.profile_url)
        unique.append(summary)
    return unique


def has_no_results_marker(html: str) -> bool:
    """True when LinkedIn explicitly says the search matched nobody"""
    soup = BeautifulSoup(html, 'html.parser')
    for selector in NO_RESULTS_SELECTORS:
        if soup.select_one(selector) is not None:
            return True
    main = soup.select_one('main') or soup
    text = main.get_text(' ').lower()
    return any(phrase in text for phrase in NO_RESULTS_PHRASES)

"""
Extraction strategies

A strategy is a named function that takes a parsed element and returns a
value or None. Cascades are ordered lists of strategies; the first non-empty
result wins. Markup differs between LinkedIn rollout cohorts, so every
field is read through a cascade rather than a single selector.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from bs4 import Tag

from talent_scraper.utils.helpers import clean_text

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class Strategy(Generic[T]):
    name: str
    extract: Callable[[Any], Optional[T]]

    def __call__(self, node) -> Optional[T]:
        return self.extract(node)


def is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


def first_match(strategies: Iterable[Strategy[T]], node) -> Optional[T]:
    """Run strategies in order and return the first non-empty result"""
    for strategy in strategies:
        try:
            value = strategy(node)
        except Exception as e:
            logger.debug(f"Strategy '{strategy.name}' raised {type(e).__name__}: {e}")
            continue
        if not is_empty(value):
            return value
    return None


def select_text(*selectors: str) -> Callable[[Tag], Optional[str]]:
    """Strategy body: text of the first element matching any selector"""
    def extract(node: Tag) -> Optional[str]:
        for selector in selectors:
            el = node.select_one(selector)
            if el is not None:
                text = visible_text(el)
                if text:
                    return text
        return None
    return extract


def select_attr(attr: str, *selectors: str) -> Callable[[Tag], Optional[str]]:
    def extract(node: Tag) -> Optional[str]:
        for selector in selectors:
            el = node.select_one(selector)
            if el is not None and el.get(attr):
                return el.get(attr).strip()
        return None
    return extract


def visible_text(el: Tag) -> str:
    """
    Text as a sighted user reads it

    LinkedIn renders most strings twice, once in span[aria-hidden=true] and
    once in a visually-hidden span for screen readers; prefer the former.
    """
    hidden = el.select_one('span[aria-hidden="true"]')
    if hidden is not None:
        text = clean_text(hidden.get_text(' '))
        if text:
            return text
    parts = [
        s for s in el.find_all(string=True)
        if not _inside_visually_hidden(s, el)
    ]
    return clean_text(' '.join(parts))


def _inside_visually_hidden(string, root: Tag) -> bool:
    parent = string.parent
    while parent is not None and parent is not root:
        classes = parent.get('class') or []
        if 'visually-hidden' in classes or parent.name in ('script', 'style'):
            return True
        parent = parent.parent
    return False


def aria_lines(el: Tag, exclude: Sequence[Tag] = ()) -> List[str]:
    """Ordered visible strings of an entry (aria-hidden spans, de-duplicated)"""
    lines: List[str] = []
    for span in el.select('span[aria-hidden="true"]'):
        if exclude and is_within(span, exclude):
            continue
        # Skip wrappers whose text is repeated by an inner aria-hidden span
        if span.select_one('span[aria-hidden="true"]') is not None:
            continue
        text = clean_text(span.get_text(' '))
        if text and (not lines or lines[-1] != text):
            lines.append(text)
    return lines


def is_within(node: Tag, containers: Sequence[Tag]) -> bool:
    """Identity-based ancestry test (bs4 Tag equality is structural)"""
    for parent in node.parents:
        if any(parent is c for c in containers):
            return True
    return False

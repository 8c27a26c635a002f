"""
URL and text helpers shared by the session, search and profile code
"""

import re
from typing import List, Optional
from urllib.parse import quote, unquote, urlencode, urljoin, urlparse

BASE_URL = 'https://www.linkedin.com'
SEARCH_URL = f'{BASE_URL}/search/results/people/'

# First path segment of pages that mean "not signed in" / "verify yourself"
LOGIN_PATH_ROOTS = ('login', 'authwall', 'uas', 'signup')
CHALLENGE_PATH_ROOTS = ('checkpoint', 'challenge')

# The login form posts to /checkpoint/lg/login-submit and re-renders there
# on a wrong password, so that path is a login page, not a challenge
LOGIN_SUBMIT = 'login-submit'
LOGIN_CHECKPOINT_PREFIX = ('checkpoint', 'lg')

_PROFILE_PATH = re.compile(r'^/in/([^/?#]+)/?')
_WHITESPACE = re.compile(r'\s+')


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace runs and strip"""
    if not text:
        return ""
    return _WHITESPACE.sub(' ', text).strip()


def canonical_profile_url(href: Optional[str]) -> Optional[str]:
    """
    Normalize a profile link to https://www.linkedin.com/in/<identity>

    Accepts absolute links (any linkedin.com subdomain) and relative /in/ paths.
    Returns None for anything that is not a member profile.
    """
    if not href:
        return None
    href = href.strip()
    if href.startswith('in/'):
        href = '/' + href
    parsed = urlparse(urljoin(BASE_URL, href))
    host = (parsed.hostname or '').lower()
    if host != 'linkedin.com' and not host.endswith('.linkedin.com'):
        return None
    match = _PROFILE_PATH.match(parsed.path)
    if not match:
        return None
    identity = unquote(match.group(1)).strip()
    if not identity or identity.lower() in ('unavailable', 'me'):
        return None
    return f'{BASE_URL}/in/{quote(identity, safe="-_.~")}'


def identity_from_url(profile_url: str) -> str:
    """Identity segment of a profile URL ('' when there is none)"""
    match = _PROFILE_PATH.match(urlparse(urljoin(BASE_URL, profile_url)).path)
    return unquote(match.group(1)) if match else ""


def absolute_url(href: Optional[str]) -> Optional[str]:
    """
    Resolve a relative link

    Query strings on linkedin.com links are tracking noise and are dropped;
    other hosts keep theirs (signed media URLs need them).
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith('data:') or href.startswith('javascript:'):
        return None
    url = urljoin(BASE_URL, href)
    if not is_linkedin_url(url):
        return url
    parsed = urlparse(url)
    return f'{parsed.scheme}://{parsed.netloc}{parsed.path}'


def build_search_url(keyword: str) -> str:
    return f'{SEARCH_URL}?{urlencode({"keywords": keyword})}'


def _path_segments(url: Optional[str]) -> List[str]:
    return [s for s in urlparse(url or '').path.lower().split('/') if s]


def is_login_url(url: Optional[str]) -> bool:
    segments = _path_segments(url)
    if not segments:
        return False
    return (
        segments[0] in LOGIN_PATH_ROOTS
        or segments[-1] == LOGIN_SUBMIT
        or tuple(segments[:2]) == LOGIN_CHECKPOINT_PREFIX
    )


def is_challenge_url(url: Optional[str]) -> bool:
    segments = _path_segments(url)
    return bool(segments) and segments[0] in CHALLENGE_PATH_ROOTS and not is_login_url(url)


def is_linkedin_url(url: Optional[str]) -> bool:
    host = (urlparse(url or '').hostname or '').lower()
    return host == 'linkedin.com' or host.endswith('.linkedin.com')

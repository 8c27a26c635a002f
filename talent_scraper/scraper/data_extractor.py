"""
Profile page data extractor

- Parses a page.content() snapshot with BeautifulSoup
- One parser per section (identity, about, experience, education, skills,
  languages, certifications), each locating its own anchor
- A missing or broken section yields an empty collection, never a failure
- Entry fields read through cascades: pvs-entity markup, legacy pv-entity
  markup, then plain ordered text lines
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from talent_scraper.exceptions import ExtractionError
from talent_scraper.models import (
    CertificationEntry,
    DateRange,
    EducationEntry,
    ExperienceEntry,
    ProfileDetail,
)
from talent_scraper.scraper.strategies import (
    Strategy,
    aria_lines,
    first_match,
    is_within,
    select_attr,
    select_text,
    visible_text,
)
from talent_scraper.utils.helpers import absolute_url, clean_text

logger = logging.getLogger(__name__)

PRESENT_MARKERS = ('present', 'current', 'now', 'today', 'atual', 'o momento', 'presente', 'actualidad')
RANGE_SEPARATOR = re.compile(r'\s+[-–—]\s+|\s*[–—]\s*|(?<=\d{4})-(?=\d{4})|\s+to\s+', re.IGNORECASE)
DATE_HINT = re.compile(r'\b(19|20)\d{2}\b|\bpresent\b|\bcurrent\b|\batual\b|o momento', re.IGNORECASE)
ISSUED = re.compile(r'^(?:Issued|Emitido em)\s+(?P<date>.+)$', re.IGNORECASE)
EXPIRES = re.compile(r'^(?:Expires|Expired|Expira em|Expirou em)\s+(?P<date>.+)$', re.IGNORECASE)
CREDENTIAL_ID = re.compile(r'^(?:Credential ID|ID da credencial)\s+(?P<id>.+)$', re.IGNORECASE)

ACCESS_ISSUE_PHRASES = [
    "this profile is not available",
    "you cannot view this profile",
    "profile is not public",
    "this page doesn't exist",
    "page not found",
]

# anchor id on the current layout, legacy section selectors, heading texts
SECTION_LOCATORS: Dict[str, Tuple[str, Sequence[str], Sequence[str]]] = {
    'about': ('about', ('section.pv-about-section',), ('about', 'sobre')),
    'experience': ('experience', ('section#experience-section',), ('experience', 'experiência')),
    'education': ('education', ('section#education-section', 'section.education-section'),
                  ('education', 'formação acadêmica', 'educação')),
    'skills': ('skills', ('section.pv-skill-categories-section',), ('skills', 'competências')),
    'languages': ('languages', ('section.languages', 'section#languages-section'), ('languages', 'idiomas')),
    'certifications': ('licenses_and_certifications', ('section#certifications-section',),
                       ('licenses & certifications', 'licenses and certifications',
                        'licenças e certificados', 'certifications')),
}

LIST_SECTIONS = ('experience', 'education', 'skills', 'languages', 'certifications')

ENTRY_PATTERNS = [
    'li.artdeco-list__item',
    'li.pvs-list__paged-list-item',
    'li.pv-entity__position-group-pager',
    'li.pv-profile-section__list-item',
    'li.pv-skill-category-entity',
    'li.pv-accomplishment-entity',
    'li.pv-education-entity',
]

SUB_COMPONENTS = '.pvs-entity__sub-components'

NOISE_PREFIXES = ('show all', 'see all', 'endorsed by', 'endorsement', 'passed linkedin skill')


# --------------------------------------------------------------------- dates

def parse_date_range(text: Optional[str], duration: Optional[str] = None) -> DateRange:
    """
    Split "Jan 2020 - Present · 3 yrs 2 mos" into its parts

    The duration may also come in separately when the markup puts it in its
    own node. A missing end, or a present/current marker, means is_current.
    """
    text = clean_text(text)
    duration = clean_text(duration) or None
    if not text:
        return DateRange(duration=duration)

    parts = [p.strip() for p in text.split('·')]
    range_text = parts[0]
    if duration is None and len(parts) > 1 and parts[1]:
        duration = parts[1]

    bounds = RANGE_SEPARATOR.split(range_text, maxsplit=1)
    start = bounds[0].strip() or None
    end = bounds[1].strip() if len(bounds) > 1 else None

    is_current = False
    if not end:
        end = None
        is_current = True
    elif any(end.lower().startswith(marker) for marker in PRESENT_MARKERS):
        end = None
        is_current = True

    return DateRange(start=start, end=end, duration=duration, is_current=is_current)


# ----------------------------------------------------------------- locating

def locate_section(soup: BeautifulSoup, name: str) -> Optional[Tag]:
    anchor_id, legacy_selectors, headings = SECTION_LOCATORS[name]
    strategies = [
        Strategy('anchor-id', lambda s: _section_by_anchor(s, anchor_id)),
        Strategy('legacy-selector', lambda s: _section_by_selector(s, legacy_selectors)),
        Strategy('heading-text', lambda s: _section_by_heading(s, headings)),
    ]
    return first_match(strategies, soup)


def _section_by_anchor(soup: BeautifulSoup, anchor_id: str) -> Optional[Tag]:
    anchor = soup.find(id=anchor_id)
    if anchor is None:
        return None
    if anchor.name == 'section':
        return anchor
    return anchor.find_parent('section')


def _section_by_selector(soup: BeautifulSoup, selectors: Sequence[str]) -> Optional[Tag]:
    for selector in selectors:
        el = soup.select_one(selector)
        if el is not None:
            return el
    return None


def _section_by_heading(soup: BeautifulSoup, headings: Sequence[str]) -> Optional[Tag]:
    for heading in soup.find_all(['h2', 'h3']):
        if visible_text(heading).lower() in headings:
            section = heading.find_parent('section')
            if section is not None:
                return section
    return None


def find_entries(section: Tag) -> List[Tag]:
    """Top-level list items of a section (nested sub-positions excluded)"""
    selected: List[Tag] = []
    for pattern in ENTRY_PATTERNS:
        for node in section.select(pattern):
            if any(node is s for s in selected) or is_within(node, selected):
                continue
            if any(is_within(s, [node]) for s in selected):
                continue
            if any('pvs-entity__sub-components' in (p.get('class') or []) for p in node.parents):
                continue
            selected.append(node)
    return selected


def _own(node: Tag, selector: str) -> List[Tag]:
    """Matches of selector that do not belong to nested sub-components"""
    nested = node.select(SUB_COMPONENTS)
    return [el for el in node.select(selector) if not is_within(el, nested)]


def _own_text(node: Tag, selector: str) -> Optional[str]:
    for el in _own(node, selector):
        text = visible_text(el)
        if text:
            return text
    return None


def _entity(entry: Tag) -> Optional[Tag]:
    """The pvs-entity block of a current-layout list item"""
    if 'pvs-entity' in (entry.get('class') or []):
        return entry
    return entry.select_one('.pvs-entity, [data-view-name="profile-component-entity"]')


def _split_dot(text: Optional[str]) -> List[str]:
    return [p.strip() for p in (text or '').split('·') if p.strip()]


def _description(node: Tag) -> Optional[str]:
    for el in node.select(f'{SUB_COMPONENTS} .inline-show-more-text, .pv-entity__description, '
                          f'{SUB_COMPONENTS} .pvs-list__outer-container'):
        text = visible_text(el)
        if text and not text.lower().startswith('skills:'):
            return text
    return None


def _is_noise(text: str) -> bool:
    lower = text.lower()
    return any(lower.startswith(prefix) for prefix in NOISE_PREFIXES)


# --------------------------------------------------------------- experience

def _experience_modern(entry: Tag) -> Optional[List[ExperienceEntry]]:
    entity = _entity(entry)
    if entity is None:
        return None
    title = _own_text(entity, '.t-bold')
    if not title:
        return None

    nested_roles = [
        role for role in entity.select(f'{SUB_COMPONENTS} .pvs-entity, '
                                       f'{SUB_COMPONENTS} [data-view-name="profile-component-entity"]')
        if role.select_one('.t-bold') is not None and _caption_dates(role)
    ]
    company_url = absolute_url(select_attr('href', 'a[href*="/company/"]')(entity))

    if nested_roles:
        # Several roles at one company: outer title is the company
        roles = []
        for role in nested_roles:
            parsed = _modern_role(role, company=title, company_url=company_url)
            if parsed:
                roles.append(parsed)
        return roles or None

    company_line = _split_dot(_own_text(entity, 'span.t-14.t-normal:not(.t-black--light)'))
    role = _modern_role(entity, company=company_line[0] if company_line else "", company_url=company_url)
    if role and len(company_line) > 1:
        role.employment_type = company_line[1]
    return [role] if role else None


def _caption_dates(node: Tag) -> Optional[str]:
    for el in _own(node, '.pvs-entity__caption-wrapper, span.t-14.t-normal.t-black--light'):
        text = visible_text(el)
        if text and DATE_HINT.search(text):
            return text
    return None


def _caption_location(node: Tag) -> Optional[str]:
    for el in _own(node, 'span.t-14.t-normal.t-black--light'):
        text = visible_text(el)
        if text and not DATE_HINT.search(text):
            parts = _split_dot(text)
            return parts[0] if parts else None
    return None


def _modern_role(node: Tag, company: str, company_url: Optional[str]) -> Optional[ExperienceEntry]:
    title = _own_text(node, '.t-bold')
    if not title:
        return None
    dates = parse_date_range(_caption_dates(node))
    return ExperienceEntry(
        title=title,
        company=company,
        company_url=company_url,
        location=_caption_location(node),
        start_date=dates.start,
        end_date=dates.end,
        duration=dates.duration,
        is_current=dates.is_current if dates.start else False,
        description=_description(node),
    )


def _experience_legacy(entry: Tag) -> Optional[List[ExperienceEntry]]:
    title = select_text('h3')(entry)
    if not title:
        return None
    dates = parse_date_range(
        select_text('h4.pv-entity__date-range span:not(.visually-hidden)')(entry),
        select_text('span.pv-entity__bullet-item-v2')(entry),
    )
    company_parts = _split_dot(select_text('p.pv-entity__secondary-title')(entry))
    return [ExperienceEntry(
        title=title,
        company=company_parts[0] if company_parts else "",
        company_url=absolute_url(select_attr('href', 'a[href*="/company/"]')(entry)),
        location=select_text('h4.pv-entity__location span:not(.visually-hidden)')(entry),
        start_date=dates.start,
        end_date=dates.end,
        duration=dates.duration,
        is_current=dates.is_current if dates.start else False,
        employment_type=company_parts[1] if len(company_parts) > 1 else None,
        description=select_text('.pv-entity__description')(entry),
    )]


def _experience_text_lines(entry: Tag) -> Optional[List[ExperienceEntry]]:
    lines = [line for line in (aria_lines(entry) or _stripped_lines(entry)) if not _is_noise(line)]
    if not lines:
        return None
    title = lines[0]
    date_idx = next((i for i, line in enumerate(lines[1:], 1) if DATE_HINT.search(line)), None)
    company_parts = _split_dot(lines[1]) if len(lines) > 1 and date_idx != 1 else []
    dates = parse_date_range(lines[date_idx] if date_idx else None)
    location = None
    description = None
    if date_idx is not None:
        rest = lines[date_idx + 1:]
        if rest and len(rest[0]) <= 60:
            location = _split_dot(rest[0])[0] if _split_dot(rest[0]) else None
            rest = rest[1:]
        description = ' '.join(rest) or None
    return [ExperienceEntry(
        title=title,
        company=company_parts[0] if company_parts else "",
        location=location,
        start_date=dates.start,
        end_date=dates.end,
        duration=dates.duration,
        is_current=dates.is_current if dates.start else False,
        employment_type=company_parts[1] if len(company_parts) > 1 else None,
        description=description,
    )]


def _stripped_lines(entry: Tag) -> List[str]:
    return [clean_text(s) for s in entry.stripped_strings if clean_text(s)]


EXPERIENCE_STRATEGIES = [
    Strategy('pvs-entity', _experience_modern),
    Strategy('pv-entity', _experience_legacy),
    Strategy('text-lines', _experience_text_lines),
]


# ---------------------------------------------------------------- education

def _split_degree(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    if not text:
        return None, None
    degree, _, field = text.partition(',')
    return clean_text(degree) or None, clean_text(field) or None


def _education_modern(entry: Tag) -> Optional[EducationEntry]:
    entity = _entity(entry)
    if entity is None:
        return None
    school = _own_text(entity, '.t-bold')
    if not school:
        return None
    degree, field = _split_degree(_own_text(entity, 'span.t-14.t-normal:not(.t-black--light)'))
    dates = parse_date_range(_caption_dates(entity))
    return EducationEntry(
        school=school,
        school_url=absolute_url(select_attr('href', 'a[href*="/school/"]', 'a[href*="/company/"]')(entity)),
        degree=degree,
        field_of_study=field,
        start_date=dates.start,
        end_date=dates.end,
        description=_description(entity),
    )


def _education_legacy(entry: Tag) -> Optional[EducationEntry]:
    school = select_text('h3.pv-entity__school-name', 'h3')(entry)
    if not school:
        return None
    times = [clean_text(t.get_text()) for t in entry.select('p.pv-entity__dates time')]
    return EducationEntry(
        school=school,
        school_url=absolute_url(select_attr('href', 'a[href*="/school/"]')(entry)),
        degree=select_text('p.pv-entity__degree-name span.pv-entity__comma-item')(entry),
        field_of_study=select_text('p.pv-entity__fos span.pv-entity__comma-item')(entry),
        start_date=times[0] if times else None,
        end_date=times[1] if len(times) > 1 else None,
        description=select_text('.pv-entity__description')(entry),
    )


def _education_text_lines(entry: Tag) -> Optional[EducationEntry]:
    lines = [line for line in (aria_lines(entry) or _stripped_lines(entry)) if not _is_noise(line)]
    if not lines:
        return None
    date_line = next((line for line in lines[1:] if DATE_HINT.search(line)), None)
    degree_line = next((line for line in lines[1:] if line != date_line), None)
    degree, field = _split_degree(degree_line)
    dates = parse_date_range(date_line)
    return EducationEntry(
        school=lines[0],
        degree=degree,
        field_of_study=field,
        start_date=dates.start,
        end_date=dates.end,
    )


EDUCATION_STRATEGIES = [
    Strategy('pvs-entity', _education_modern),
    Strategy('pv-entity', _education_legacy),
    Strategy('text-lines', _education_text_lines),
]


# ---------------------------------------------------- skills and languages

def _name_modern(entry: Tag) -> Optional[str]:
    entity = _entity(entry)
    if entity is None:
        return None
    return _own_text(entity, '.t-bold')


NAME_STRATEGIES = [
    Strategy('pvs-entity', _name_modern),
    Strategy('pv-entity', select_text(
        'span.pv-skill-category-entity__name-text',
        'p.pv-skill-category-entity__name',
        '.pv-accomplishment-entity__title',
    )),
    Strategy('text-lines', lambda entry: next(iter(aria_lines(entry) or _stripped_lines(entry)), None)),
]


def _strip_label(text: Optional[str], labels: Sequence[str]) -> Optional[str]:
    """Remove screen-reader labels such as 'Language name' that leak into text"""
    if not text:
        return text
    for label in labels:
        if text.lower().startswith(label):
            text = text[len(label):]
    return clean_text(text) or None


def unique_names(names: List[str]) -> List[str]:
    """Order-preserving, case-insensitive de-duplication"""
    seen = set()
    result = []
    for name in names:
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result


# ------------------------------------------------------------ certifications

def _certification_modern(entry: Tag) -> Optional[CertificationEntry]:
    entity = _entity(entry)
    if entity is None:
        return None
    name = _own_text(entity, '.t-bold')
    if not name:
        return None
    cert = CertificationEntry(
        name=name,
        issuer=_own_text(entity, 'span.t-14.t-normal:not(.t-black--light)'),
        issuer_url=absolute_url(select_attr('href', 'a[href*="/company/"]')(entity)),
    )
    for el in _own(entity, 'span.t-14.t-normal.t-black--light'):
        _apply_cert_line(cert, visible_text(el))
    cert.credential_url = _credential_link(entity)
    return cert


def _certification_legacy(entry: Tag) -> Optional[CertificationEntry]:
    name = select_text('h3')(entry)
    if not name:
        return None
    cert = CertificationEntry(name=name)
    for p in entry.select('p'):
        hidden = p.select_one('.visually-hidden')
        label = clean_text(hidden.get_text()).lower() if hidden else ''
        value = clean_text(' '.join(
            s for s in p.find_all(string=True) if not (hidden and is_within(s, [hidden]))
        ))
        if not value:
            continue
        if 'authority' in label:
            cert.issuer = value
        else:
            _apply_cert_line(cert, value)
    cert.issuer_url = absolute_url(select_attr('href', 'a[href*="/company/"]')(entry))
    cert.credential_url = _credential_link(entry)
    return cert


def _apply_cert_line(cert: CertificationEntry, text: str):
    """Read "Issued X · Expires Y" and "Credential ID Z" caption lines"""
    for part in _split_dot(clean_text(text)):
        issued = ISSUED.match(part)
        expires = EXPIRES.match(part)
        credential = CREDENTIAL_ID.match(part)
        if issued:
            cert.issued_date = issued.group('date').strip()
        elif expires:
            cert.expiration_date = expires.group('date').strip()
        elif credential:
            cert.credential_id = credential.group('id').strip()


def _credential_link(node: Tag) -> Optional[str]:
    for anchor in node.select('a[href]'):
        label = (anchor.get('aria-label') or '') + ' ' + visible_text(anchor)
        if 'credential' in label.lower() or 'credencial' in label.lower():
            return absolute_url(anchor.get('href'))
    return None


CERTIFICATION_STRATEGIES = [
    Strategy('pvs-entity', _certification_modern),
    Strategy('pv-entity', _certification_legacy),
]


# ------------------------------------------------------------------ identity

NAME_CASCADE = [
    Strategy('heading-xlarge', select_text('h1.text-heading-xlarge', 'h1.top-card-layout__title')),
    Strategy('legacy-top-card', select_text('li.inline.t-24', '.pv-top-card--list li:first-child')),
    Strategy('any-h1', select_text('main h1', 'h1')),
    Strategy('page-title', lambda soup: _name_from_title(soup)),
]

HEADLINE_CASCADE = [
    Strategy('body-medium', select_text('div.text-body-medium.break-words', 'h2.top-card-layout__headline')),
    Strategy('legacy-top-card', select_text('h2.mt1.t-18', '.pv-top-card--list + h2')),
]

LOCATION_CASCADE = [
    Strategy('body-small', select_text('span.text-body-small.inline.t-black--light.break-words')),
    Strategy('legacy-top-card', select_text('li.t-16.t-black.t-normal.inline-block',
                                            '.pv-top-card--list-bullet li:first-child')),
]

PHOTO_CASCADE = [
    Strategy('top-card-picture', select_attr('src',
                                             'img.pv-top-card-profile-picture__image--show',
                                             'img.pv-top-card-profile-picture__image',
                                             'img.profile-photo-edit__preview')),
    Strategy('display-photo', select_attr('src', 'img[src*="profile-displayphoto"]')),
]

BANNER_CASCADE = [
    Strategy('background-target', select_attr('src', 'img#profile-background-image-target-image')),
    Strategy('background-wrapper', select_attr('src', '.profile-background-image img',
                                               'img[src*="profile-displaybackgroundimage"]')),
]

ABOUT_CASCADE = [
    Strategy('show-more-text', select_text('.inline-show-more-text', 'div.display-flex.full-width')),
    Strategy('legacy-summary', select_text('.pv-about__summary-text', 'p.pv-about-section__summary-text')),
]


def _name_from_title(soup: BeautifulSoup) -> Optional[str]:
    title = soup.title.get_text() if soup.title else ''
    name = clean_text(re.sub(r'\s*\|\s*LinkedIn\s*$', '', title))
    name = re.sub(r'^\(\d+\)\s*', '', name)
    if not name or name.lower() in ('linkedin', 'sign in', 'log in'):
        return None
    return name


def _top_card(soup: BeautifulSoup) -> Tag:
    return (
        soup.select_one('section.pv-top-card, section.artdeco-card[data-member-id], div.pv-top-card')
        or soup.select_one('main')
        or soup
    )


def has_access_issue(html: str) -> bool:
    """Profile page says the member is unavailable or hidden"""
    soup = BeautifulSoup(html, 'html.parser')
    text = (soup.select_one('main') or soup).get_text(' ').lower()
    return any(phrase in text for phrase in ACCESS_ISSUE_PHRASES)


class DataExtractor:
    """Turns a profile page snapshot into a ProfileDetail"""

    def extract_profile(self, html: str, profile_url: str) -> ProfileDetail:
        """
        Parse every section of a profile page

        Args:
            html: page.content() of the profile
            profile_url: canonical URL the page was loaded from; the identity
                         id is derived from it, never from the page

        Raises:
            ExtractionError: the identity block has no name
        """
        soup = BeautifulSoup(html, 'html.parser')
        top = _top_card(soup)

        full_name = first_match(NAME_CASCADE, top) or first_match(NAME_CASCADE, soup)
        if not full_name:
            raise ExtractionError("Could not find the profile name", url=profile_url)

        detail = ProfileDetail(
            profile_url=profile_url,
            full_name=full_name,
            headline=first_match(HEADLINE_CASCADE, top) or "",
            location=first_match(LOCATION_CASCADE, top) or "",
            photo_url=absolute_url(first_match(PHOTO_CASCADE, top)),
            banner_url=absolute_url(first_match(BANNER_CASCADE, soup)),
        )

        about = locate_section(soup, 'about')
        if about is None:
            detail.missing_sections.append('about')
        else:
            detail.about = first_match(ABOUT_CASCADE, about) or ""

        for name in LIST_SECTIONS:
            items = self.extract_section(soup, name)
            if items is None:
                detail.missing_sections.append(name)
                items = []
            setattr(detail, name, items)

        logger.info(
            f"Extracted {full_name}: {len(detail.experience)} experience, "
            f"{len(detail.education)} education, {len(detail.skills)} skills, "
            f"{len(detail.languages)} languages, {len(detail.certifications)} certifications"
        )
        if detail.missing_sections:
            logger.debug(f"Sections not present: {', '.join(detail.missing_sections)}")
        return detail

    def extract_section(self, soup: BeautifulSoup, name: str) -> Optional[list]:
        """
        Entries of one list section

        Returns None when the section anchor is absent, and [] when the
        section is present but its parser failed.
        """
        section = locate_section(soup, name)
        if section is None:
            return None
        parser = self._parsers()[name]
        try:
            return parser(section)
        except Exception as e:
            logger.warning(f"[WARN] Could not parse {name} section: {type(e).__name__}: {e}")
            return []

    def extract_section_from_html(self, html: str, name: str) -> Optional[list]:
        """Same as extract_section, for a standalone 'show all' details page"""
        return self.extract_section(BeautifulSoup(html, 'html.parser'), name)

    def _parsers(self) -> Dict[str, Callable[[Tag], list]]:
        return {
            'experience': self.parse_experience,
            'education': self.parse_education,
            'skills': self.parse_skills,
            'languages': self.parse_languages,
            'certifications': self.parse_certifications,
        }

    def parse_experience(self, section: Tag) -> List[ExperienceEntry]:
        entries: List[ExperienceEntry] = []
        for entry in find_entries(section):
            roles = first_match(EXPERIENCE_STRATEGIES, entry)
            if roles:
                entries.extend(r for r in roles if not _is_noise(r.title))
        return entries

    def parse_education(self, section: Tag) -> List[EducationEntry]:
        entries = []
        for entry in find_entries(section):
            parsed = first_match(EDUCATION_STRATEGIES, entry)
            if parsed and not _is_noise(parsed.school):
                entries.append(parsed)
        return entries

    def parse_skills(self, section: Tag) -> List[str]:
        names = []
        for entry in find_entries(section):
            name = first_match(NAME_STRATEGIES, entry)
            if name and not _is_noise(name) and len(name) <= 80:
                names.append(name)
        return unique_names(names)

    def parse_languages(self, section: Tag) -> List[str]:
        names = []
        for entry in find_entries(section):
            name = _strip_label(first_match(NAME_STRATEGIES, entry), ('language name', 'idioma'))
            if name and not _is_noise(name) and len(name) <= 50:
                names.append(name)
        return unique_names(names)

    def parse_certifications(self, section: Tag) -> List[CertificationEntry]:
        entries = []
        for entry in find_entries(section):
            parsed = first_match(CERTIFICATION_STRATEGIES, entry)
            if parsed and not _is_noise(parsed.name):
                entries.append(parsed)
        return entries

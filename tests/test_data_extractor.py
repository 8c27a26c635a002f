import pytest
from bs4 import BeautifulSoup

from talent_scraper.exceptions import ExtractionError
from talent_scraper.scraper.data_extractor import (
    DataExtractor,
    has_access_issue,
    parse_date_range,
    unique_names,
)
from tests.fakes import load_fixture

ANA_URL = "https://www.linkedin.com/in/ana-souza"


@pytest.fixture
def extractor():
    return DataExtractor()


@pytest.fixture
def ana(extractor):
    return extractor.extract_profile(load_fixture('profile_full.html'), ANA_URL)


@pytest.mark.parametrize("text,duration,expected", [
    ("Jan 2020 - Present · 3 yrs 2 mos", None, ("Jan 2020", None, "3 yrs 2 mos", True)),
    ("Feb 2015 – Mar 2017", "2 yrs 2 mos", ("Feb 2015", "Mar 2017", "2 yrs 2 mos", False)),
    ("2012 - 2016", None, ("2012", "2016", None, False)),
    ("2015-2019", None, ("2015", "2019", None, False)),
    ("2019", None, ("2019", None, None, True)),
    ("mar de 2021 - o momento · 2 anos", None, ("mar de 2021", None, "2 anos", True)),
    ("Jun 2018 to Current", None, ("Jun 2018", None, None, True)),
])
def test_parse_date_range(text, duration, expected):
    result = parse_date_range(text, duration)
    assert (result.start, result.end, result.duration, result.is_current) == expected


def test_parse_date_range_empty():
    result = parse_date_range("")
    assert result.start is None and result.end is None
    assert result.is_current is False


def test_identity_block(ana):
    assert ana.full_name == "Ana Souza"
    assert ana.headline == "Senior Frontend Engineer at Acme Corp"
    assert ana.location == "São Paulo, São Paulo, Brazil"
    assert "profile-displayphoto-shrink_400_400" in ana.photo_url
    assert "profile-displaybackgroundimage" in ana.banner_url
    assert ana.about == "Frontend engineer focused on accessible design systems."


def test_identity_id_comes_from_the_requested_url(ana):
    assert ana.profile_url == ANA_URL
    assert ana.identity_id == "ana-souza"


def test_experience_including_grouped_positions(ana):
    assert [e.title for e in ana.experience] == [
        "Senior Frontend Engineer", "Tech Lead", "Software Engineer",
    ]
    current = ana.experience[0]
    assert current.company == "Acme Corp"
    assert current.employment_type == "Full-time"
    assert current.company_url == "https://www.linkedin.com/company/1035/"
    assert current.start_date == "Jan 2021"
    assert current.end_date is None
    assert current.is_current is True
    assert current.duration == "3 yrs 10 mos"
    assert current.location == "São Paulo, Brazil"
    assert current.description == "Leading the design system team."

    lead, engineer = ana.experience[1:]
    assert lead.company == engineer.company == "Globex"
    assert lead.company_url == "https://www.linkedin.com/company/globex/"
    assert (lead.start_date, lead.end_date, lead.is_current) == ("Jan 2019", "Dec 2020", False)
    assert lead.location == "Remote"
    assert engineer.location is None


def test_education(ana):
    assert len(ana.education) == 1
    usp = ana.education[0]
    assert usp.school == "Universidade de São Paulo"
    assert usp.school_url == "https://www.linkedin.com/school/usp/"
    assert usp.degree == "Bachelor's degree"
    assert usp.field_of_study == "Computer Science"
    assert (usp.start_date, usp.end_date) == ("2012", "2016")


def test_skills_and_languages_are_unique_in_page_order(ana):
    assert ana.skills == ["React", "TypeScript", "Node.js"]
    assert ana.languages == ["Portuguese", "English"]


def test_certifications(ana):
    assert len(ana.certifications) == 1
    cert = ana.certifications[0]
    assert cert.name == "AWS Certified Developer – Associate"
    assert cert.issuer == "Amazon Web Services (AWS)"
    assert cert.issuer_url == "https://www.linkedin.com/company/amazon-web-services/"
    assert cert.issued_date == "Mar 2023"
    assert cert.expiration_date == "Mar 2026"
    assert cert.credential_id == "ABC-123"
    assert cert.credential_url == "https://www.credly.com/badges/abc-123"


def test_full_profile_has_no_missing_sections(ana):
    assert ana.missing_sections == []
    assert ana.completeness == 100


def test_absent_sections_are_empty_and_recorded(extractor):
    detail = extractor.extract_profile(
        load_fixture('profile_no_languages.html'), "https://www.linkedin.com/in/bruna-alves"
    )

    assert detail.full_name == "Bruna Alves"
    assert detail.languages == []
    assert detail.certifications == []
    assert detail.missing_sections == ["languages", "certifications"]
    assert len(detail.experience) == 3
    assert detail.skills == ["React", "TypeScript", "Node.js"]


def test_legacy_markup(extractor):
    detail = extractor.extract_profile(
        load_fixture('profile_legacy.html'), "https://www.linkedin.com/in/bruno-lima"
    )

    assert detail.full_name == "Bruno Lima"
    assert detail.headline == "Backend Developer"
    assert detail.location == "Austin, Texas"
    assert "profile-displayphoto" in detail.photo_url

    assert len(detail.experience) == 1
    job = detail.experience[0]
    assert job.title == "Developer"
    assert job.company == "Initech"
    assert job.company_url == "https://www.linkedin.com/company/initech/"
    assert (job.start_date, job.end_date, job.duration) == ("Feb 2015", "Mar 2017", "2 yrs 2 mos")
    assert job.location == "Austin, Texas"
    assert job.description == "Maintained TPS reports."

    school = detail.education[0]
    assert (school.school, school.degree, school.field_of_study) == (
        "University of Texas", "BS", "Computer Engineering",
    )
    assert (school.start_date, school.end_date) == ("2010", "2014")

    assert detail.skills == ["Python", "Go"]
    assert detail.missing_sections == ["about", "languages", "certifications"]


def test_generic_text_lines_strategy(extractor):
    html = """
    <section><h2>Experience</h2><ul>
      <li class="artdeco-list__item">
        <span aria-hidden="true">Data Engineer</span>
        <span aria-hidden="true">Initrode · Contract</span>
        <span aria-hidden="true">Apr 2022 - Present · 2 yrs</span>
        <span aria-hidden="true">Lisbon, Portugal</span>
      </li>
    </ul></section>
    """
    entries = extractor.extract_section(BeautifulSoup(html, 'html.parser'), 'experience')

    assert len(entries) == 1
    entry = entries[0]
    assert (entry.title, entry.company, entry.employment_type) == ("Data Engineer", "Initrode", "Contract")
    assert entry.is_current is True
    assert entry.location == "Lisbon, Portugal"


def test_broken_section_parser_is_contained(extractor, monkeypatch):
    def explode(section):
        raise RuntimeError("unexpected markup")

    monkeypatch.setattr(extractor, 'parse_skills', explode)
    detail = extractor.extract_profile(load_fixture('profile_full.html'), ANA_URL)

    assert detail.skills == []
    assert "skills" not in detail.missing_sections
    assert len(detail.experience) == 3


def test_missing_name_raises_extraction_error(extractor):
    with pytest.raises(ExtractionError):
        extractor.extract_profile("<html><body><main><p>nothing</p></main></body></html>", ANA_URL)


def test_access_issue_detection():
    assert has_access_issue(load_fixture('profile_unavailable.html'))
    assert not has_access_issue(load_fixture('profile_full.html'))


def test_unique_names_is_case_insensitive():
    assert unique_names(["React", "react", "Go", "REACT", "go"]) == ["React", "Go"]

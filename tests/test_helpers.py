import pytest

from talent_scraper.utils.helpers import (
    absolute_url,
    build_search_url,
    canonical_profile_url,
    clean_text,
    identity_from_url,
    is_challenge_url,
    is_linkedin_url,
    is_login_url,
)


@pytest.mark.parametrize("href,expected", [
    ("https://www.linkedin.com/in/ana-souza/", "https://www.linkedin.com/in/ana-souza"),
    ("https://www.linkedin.com/in/ana-souza?miniProfileUrn=x", "https://www.linkedin.com/in/ana-souza"),
    ("https://br.linkedin.com/in/ana-souza/details/skills/", "https://www.linkedin.com/in/ana-souza"),
    ("/in/ana-souza/", "https://www.linkedin.com/in/ana-souza"),
    ("in/ana-souza", "https://www.linkedin.com/in/ana-souza"),
    ("https://www.linkedin.com/in/jos%C3%A9-silva/", "https://www.linkedin.com/in/jos%C3%A9-silva"),
])
def test_canonical_profile_url(href, expected):
    assert canonical_profile_url(href) == expected


@pytest.mark.parametrize("href", [
    None,
    "",
    "https://www.linkedin.com/company/acme/",
    "https://www.linkedin.com/in/me/",
    "https://www.linkedin.com/in/unavailable/",
    "https://evil.example.com/in/ana-souza/",
    "https://www.linkedin.com/search/results/people/headless",
])
def test_canonical_profile_url_rejects_non_profiles(href):
    assert canonical_profile_url(href) is None


def test_identity_from_url():
    assert identity_from_url("https://www.linkedin.com/in/jos%C3%A9-silva") == "josé-silva"
    assert identity_from_url("https://www.linkedin.com/company/acme") == ""


def test_login_and_challenge_urls_use_first_path_segment():
    assert is_login_url("https://www.linkedin.com/login?fromSignIn=true")
    assert is_login_url("https://www.linkedin.com/authwall?trk=x")
    assert is_login_url("https://www.linkedin.com/uas/login-submit")
    assert is_challenge_url("https://www.linkedin.com/checkpoint/challenge/AgE")
    # profile identities that merely contain the words
    assert not is_login_url("https://www.linkedin.com/in/loginking/")
    assert not is_challenge_url("https://www.linkedin.com/in/checkpoint-charlie/")
    assert not is_login_url("https://www.linkedin.com/feed/")


def test_login_form_post_target_is_a_login_page():
    url = "https://www.linkedin.com/checkpoint/lg/login-submit"
    assert is_login_url(url)
    assert not is_challenge_url(url)
    assert is_challenge_url("https://www.linkedin.com/checkpoint/challenge/AgFx?ut=1")


def test_is_linkedin_url():
    assert is_linkedin_url("https://www.linkedin.com/feed/")
    assert is_linkedin_url("https://br.linkedin.com/in/x")
    assert not is_linkedin_url("about:blank")
    assert not is_linkedin_url("https://notlinkedin.com/")


def test_absolute_url_keeps_media_query_but_drops_linkedin_tracking():
    assert absolute_url("/company/acme/?trk=x") == "https://www.linkedin.com/company/acme/"
    media = "https://media.licdn.com/dms/image/x/profile-displayphoto-shrink_100_100/0/1?e=1&v=beta"
    assert absolute_url(media) == media
    assert absolute_url("data:image/gif;base64,AAAA") is None
    assert absolute_url("javascript:void(0)") is None
    assert absolute_url(None) is None


def test_build_search_url_encodes_keyword():
    assert build_search_url("react developer") == (
        "https://www.linkedin.com/search/results/people/?keywords=react+developer"
    )


def test_clean_text():
    assert clean_text("  Senior \n\n  Engineer\t") == "Senior Engineer"
    assert clean_text(None) == ""

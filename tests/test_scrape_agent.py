import pytest

from talent_scraper.agents.scrape_agent import ScrapeAgent
from talent_scraper.exceptions import NotAuthenticated, ProfileNotFound
from talent_scraper.scraper.browser_controller import BrowserController
from tests.fakes import LOGIN_URL, SIGNED_IN_HTML, FakeLauncher, load_fixture

BRUNA_URL = 'https://www.linkedin.com/in/bruna-alves'

EXPERIENCE_DETAILS = """
<html><body><main><section><h2>Experience</h2><ul>
  <li class="artdeco-list__item">
    <span aria-hidden="true">Staff Engineer</span>
    <span aria-hidden="true">Initrode · Full-time</span>
    <span aria-hidden="true">Jan 2023 - Present · 1 yr</span>
  </li>
  <li class="artdeco-list__item">
    <span aria-hidden="true">Senior Engineer</span>
    <span aria-hidden="true">Initrode · Full-time</span>
    <span aria-hidden="true">Jan 2021 - Dec 2022 · 2 yrs</span>
  </li>
  <li class="artdeco-list__item">
    <span aria-hidden="true">Engineer</span>
    <span aria-hidden="true">Globex · Full-time</span>
    <span aria-hidden="true">Jan 2019 - Dec 2020 · 2 yrs</span>
  </li>
  <li class="artdeco-list__item">
    <span aria-hidden="true">Intern</span>
    <span aria-hidden="true">Globex · Internship</span>
    <span aria-hidden="true">Jan 2018 - Dec 2018 · 1 yr</span>
  </li>
</ul></section></main></body></html>
"""

LANGUAGE_DETAILS = """
<html><body><main><section>
  <div id="languages" class="pv-profile-card__anchor"></div>
  <div class="pvs-header__container"><h2 class="pvs-header__title"><span aria-hidden="true">Languages</span></h2></div>
  <ul class="pvs-list">
    <li class="artdeco-list__item"><div class="pvs-entity" data-view-name="profile-component-entity">
      <div class="t-bold"><span aria-hidden="true">Portuguese</span></div>
    </div></li>
    <li class="artdeco-list__item"><div class="pvs-entity" data-view-name="profile-component-entity">
      <div class="t-bold"><span aria-hidden="true">Spanish</span></div>
    </div></li>
  </ul>
</section></main></body></html>
"""


def profile_site(url):
    if '/details/experience/' in url:
        return url, EXPERIENCE_DETAILS
    if '/details/languages/' in url:
        return url, LANGUAGE_DETAILS
    if '/details/' in url:
        return 'https://www.linkedin.com/404/', '<html></html>'
    if '/in/expired' in url:
        return LOGIN_URL, '<html></html>'
    if '/in/gone' in url:
        return url, load_fixture('profile_unavailable.html')
    if '/in/' in url:
        return url, load_fixture('profile_no_languages.html')
    return url, SIGNED_IN_HTML


@pytest.fixture
async def setup(human):
    controllers = []

    def make(**kwargs):
        launcher = FakeLauncher(router=profile_site)
        controller = BrowserController(launcher=launcher)
        controllers.append(controller)
        agent = ScrapeAgent(controller, human_behavior=human, settle_timeout=1.0, **kwargs)
        return launcher, agent

    yield make
    for controller in controllers:
        await controller.close()


async def test_modals_dismissed_and_sections_expanded_before_parsing(setup):
    launcher, agent = setup()
    await agent.browser.acquire()
    launcher.context.toggles = ['aria-label="Close"', 'inline-show-more-text__button']

    detail = await agent.scrape_profile(BRUNA_URL)

    tab = launcher.context.tabs[0]
    assert tab.clicks == ['aria-label="Close"', 'inline-show-more-text__button']
    assert tab.toggles == []
    assert tab.closed
    assert detail.full_name == "Bruna Alves"


async def test_detail_pages_replace_truncated_sections(setup):
    launcher, agent = setup(follow_detail_pages=True)

    detail = await agent.scrape_profile(BRUNA_URL)

    assert [e.title for e in detail.experience] == [
        "Staff Engineer", "Senior Engineer", "Engineer", "Intern",
    ]
    assert detail.experience[0].is_current is True
    assert detail.languages == ["Portuguese", "Spanish"]
    # certifications details page is a 404, so that gap stays recorded
    assert detail.missing_sections == ["certifications"]
    visited = launcher.context.tabs[0].visited
    assert visited[0] == BRUNA_URL
    assert f'{BRUNA_URL}/details/experience/' in visited
    assert launcher.context.open_count == 0


async def test_detail_pages_not_followed_by_default(setup):
    launcher, agent = setup()

    detail = await agent.scrape_profile(BRUNA_URL)

    assert len(detail.experience) == 3
    assert detail.missing_sections == ["languages", "certifications"]
    assert launcher.context.tabs[0].visited == [BRUNA_URL]


async def test_unavailable_profile_raises_not_found(setup):
    launcher, agent = setup()

    with pytest.raises(ProfileNotFound):
        await agent.scrape_profile('https://www.linkedin.com/in/gone-member')
    assert launcher.context.open_count == 0


async def test_login_redirect_on_profile_raises_not_authenticated(setup):
    launcher, agent = setup()

    with pytest.raises(NotAuthenticated):
        await agent.scrape_profile('https://www.linkedin.com/in/expired-session')
    assert launcher.context.open_count == 0

import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from talent_scraper.agents.search_agent import SearchAgent
from talent_scraper.exceptions import ChallengeRequired, NavigationTimeout, NotAuthenticated
from talent_scraper.models import SearchCriteria, SearchStatus
from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.scraper.diagnostics import DiagnosticsWriter
from tests.fakes import LOGIN_URL, SIGNED_IN_HTML, FakeLauncher, load_fixture


def search_router(fixture):
    def route(url):
        if '/search/results/people/' in url:
            return url, load_fixture(fixture)
        return url, SIGNED_IN_HTML
    return route


@pytest.fixture
async def make_search(tmp_path, human):
    controllers = []

    def make(router):
        launcher = FakeLauncher(router=router)
        controller = BrowserController(launcher=launcher)
        controllers.append(controller)
        agent = SearchAgent(controller, human_behavior=human,
                            diagnostics=DiagnosticsWriter(tmp_path / "diagnostics"),
                            location_timeout=0.5, settle_timeout=1.0)
        return launcher, agent

    yield make
    for controller in controllers:
        await controller.close()


async def test_search_returns_at_most_max_results(make_search):
    launcher, agent = make_search(search_router('search_results.html'))

    results = await agent.search(SearchCriteria(keyword="react developer", max_results=10))

    assert len(results) == 10
    assert len({r.profile_url for r in results}) == 10
    assert agent.last_status == SearchStatus.RESULTS
    assert all(r.profile_url.startswith("https://www.linkedin.com/in/") for r in results)
    assert launcher.page.visited[-1] == (
        "https://www.linkedin.com/search/results/people/?keywords=react+developer"
    )


async def test_no_results_marker_means_no_diagnostics(make_search, tmp_path):
    _, agent = make_search(search_router('search_no_results.html'))

    results = await agent.search(SearchCriteria(keyword="zzzz qqqq"))

    assert results == []
    assert agent.last_status == SearchStatus.NO_RESULTS
    assert not (tmp_path / 'diagnostics').exists()


async def test_unreadable_results_write_a_diagnostic_bundle(make_search, tmp_path):
    _, agent = make_search(search_router('search_unrecognized.html'))

    results = await agent.search(SearchCriteria(keyword="react developer"))

    assert results == []
    assert agent.last_status == SearchStatus.EXTRACTION_EMPTY
    written = sorted(p.suffix for p in (tmp_path / 'diagnostics').iterdir())
    assert written == ['.html', '.png']


async def test_location_falls_back_to_keywords(make_search):
    launcher, agent = make_search(search_router('search_results.html'))

    await agent.search(SearchCriteria(keyword="react developer", location="Lisbon", max_results=3))

    # no Locations facet on the fake page, so the location joins the keywords
    assert launcher.page.visited[-1].endswith("keywords=react+developer+Lisbon")


async def test_redirect_to_login_raises_not_authenticated(make_search):
    def router(url):
        if '/search/' in url:
            return LOGIN_URL, '<html></html>'
        return url, SIGNED_IN_HTML

    _, agent = make_search(router)

    with pytest.raises(NotAuthenticated):
        await agent.search(SearchCriteria(keyword="react developer"))


async def test_redirect_to_checkpoint_raises_challenge(make_search):
    def router(url):
        if '/search/' in url:
            return 'https://www.linkedin.com/checkpoint/challenge/x', '<html></html>'
        return url, SIGNED_IN_HTML

    _, agent = make_search(router)

    with pytest.raises(ChallengeRequired):
        await agent.search(SearchCriteria(keyword="react developer"))


async def test_navigation_timeout_is_not_retried(make_search):
    attempts = []

    def router(url):
        if '/search/' in url:
            attempts.append(url)
            raise PlaywrightTimeoutError("Timeout 30000ms exceeded")
        return url, SIGNED_IN_HTML

    _, agent = make_search(router)

    with pytest.raises(NavigationTimeout):
        await agent.search(SearchCriteria(keyword="react developer"))
    assert len(attempts) == 1


async def test_search_requires_authentication(make_search):
    def router(url):
        return LOGIN_URL, '<html></html>'

    launcher, agent = make_search(router)

    with pytest.raises(NotAuthenticated):
        await agent.search(SearchCriteria(keyword="react developer"))
    assert not any('/search/' in url for url in launcher.context.navigations)


async def test_location_filter_applied_through_the_facet(make_search):
    launcher, agent = make_search(search_router('search_results.html'))
    await agent.browser.acquire()
    page = launcher.page
    page.present.extend([
        'Locations', 'Add a location', 'basic-typeahead__selectable-option', 'Show results',
    ])

    results = await agent.search(SearchCriteria(keyword="react developer", location="Lisbon", max_results=3))

    assert len(results) == 3
    assert page.clicks == [
        'button:has-text("Locations")',
        'input[placeholder="Add a location"]',
        '.basic-typeahead__selectable-option',
        'button:has-text("Show results")',
    ]
    assert page.typed['input[placeholder="Add a location"]'] == "Lisbon"
    # filter applied in place: one results navigation, keywords untouched
    assert [u for u in page.visited if '/search/' in u] == [
        "https://www.linkedin.com/search/results/people/?keywords=react+developer"
    ]


async def test_concurrent_searches_each_read_their_own_page(make_search):
    async def router(url):
        if 'keywords=beta' in url:
            await asyncio.sleep(0.2)
            return url, load_fixture('search_no_results.html')
        if '/search/results/people/' in url:
            return url, load_fixture('search_results.html')
        return url, SIGNED_IN_HTML

    _, agent = make_search(router)
    alpha = SearchCriteria(keyword="alpha", max_results=5)
    beta = SearchCriteria(keyword="beta")

    alpha_results, beta_results = await asyncio.gather(agent.search(alpha), agent.search(beta))

    assert len(alpha_results) == 5
    assert beta_results == []

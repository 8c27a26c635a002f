import pytest

from talent_scraper.agents.login_agent import LoginAgent
from talent_scraper.exceptions import ChallengeRequired, InvalidCredentials
from talent_scraper.models import AuthResult, SessionState
from talent_scraper.scraper.browser_controller import BrowserController
from tests.fakes import FEED_URL, LOGIN_URL, FakeLauncher

CHALLENGE_URL = 'https://www.linkedin.com/checkpoint/challenge/AgFx'


def signed_out_router(url):
    if url.startswith(FEED_URL):
        return LOGIN_URL, '<html><body><form class="login__form"></form></body></html>'
    return url, '<html><body><form class="login__form"></form></body></html>'


def make_agent(launcher, human):
    controller = BrowserController(launcher=launcher)
    agent = LoginAgent(controller, human_behavior=human, submit_timeout=0.05, poll_interval=0.01)
    return controller, agent


async def test_already_authenticated_never_opens_login_page(human):
    launcher = FakeLauncher(start_url=FEED_URL, signed_in=True)
    controller, agent = make_agent(launcher, human)
    try:
        result = await agent.login("ana@example.com", "secret")

        assert result == AuthResult.ALREADY_AUTHENTICATED
        assert launcher.context.navigations == []
        assert controller.state == SessionState.ACTIVE_AUTHENTICATED
    finally:
        await controller.close()


async def test_successful_login(human):
    launcher = FakeLauncher(router=signed_out_router, on_submit=lambda user, pwd: FEED_URL)
    controller, agent = make_agent(launcher, human)
    try:
        result = await agent.login("ana@example.com", "secret")

        assert result == AuthResult.SUCCESS
        assert controller.state == SessionState.ACTIVE_AUTHENTICATED
        page = launcher.page
        assert LOGIN_URL in page.visited
        assert page.typed == {'#username': "ana@example.com", '#password': "secret"}
    finally:
        await controller.close()


async def test_checkpoint_after_submit_is_a_challenge(human):
    launcher = FakeLauncher(router=signed_out_router, on_submit=lambda user, pwd: CHALLENGE_URL)
    controller, agent = make_agent(launcher, human)
    try:
        with pytest.raises(ChallengeRequired) as exc_info:
            await agent.login("ana@example.com", "secret")

        assert exc_info.value.url == CHALLENGE_URL
        assert controller.state == SessionState.ACTIVE_UNAUTHENTICATED
    finally:
        await controller.close()


async def test_staying_on_login_page_means_invalid_credentials(human):
    launcher = FakeLauncher(router=signed_out_router,
                            on_submit=lambda user, pwd: 'https://www.linkedin.com/uas/login-submit')
    controller, agent = make_agent(launcher, human)
    try:
        with pytest.raises(InvalidCredentials):
            await agent.login("ana@example.com", "wrong")
        assert controller.state == SessionState.ACTIVE_UNAUTHENTICATED
    finally:
        await controller.close()


async def test_wrong_password_on_checkpoint_submit_page_is_invalid_credentials(human):
    # the form posts to /checkpoint/lg/login-submit and re-renders there
    launcher = FakeLauncher(router=signed_out_router,
                            on_submit=lambda user, pwd: 'https://www.linkedin.com/checkpoint/lg/login-submit')
    controller, agent = make_agent(launcher, human)
    try:
        with pytest.raises(InvalidCredentials) as exc_info:
            await agent.login("ana@example.com", "wrong")
        assert exc_info.value.url == 'https://www.linkedin.com/checkpoint/lg/login-submit'
        assert controller.state == SessionState.ACTIVE_UNAUTHENTICATED
    finally:
        await controller.close()


async def test_missing_credentials_fail_without_browser(human):
    launcher = FakeLauncher()
    controller, agent = make_agent(launcher, human)

    with pytest.raises(InvalidCredentials):
        await agent.login("", "")
    assert launcher.launches == []


async def test_force_relogin_clears_cookies_and_submits_form(human):
    launcher = FakeLauncher(start_url=FEED_URL, signed_in=True,
                            router=signed_out_router, on_submit=lambda user, pwd: FEED_URL)
    controller, agent = make_agent(launcher, human)
    try:
        result = await agent.force_relogin("ana@example.com", "secret")

        assert result == AuthResult.SUCCESS
        assert launcher.context.cookies_cleared
        assert LOGIN_URL in launcher.page.visited
    finally:
        await controller.close()

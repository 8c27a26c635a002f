import pytest

from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.scraper.human_behavior import HumanBehavior
from tests.fakes import FakeLauncher, fast_sleep


@pytest.fixture
def human():
    return HumanBehavior(speed=0, sleep=fast_sleep)


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
async def controller(launcher):
    ctrl = BrowserController(launcher=launcher, idle_timeout=60, auth_freshness=60)
    yield ctrl
    await ctrl.close()

import pytest

from src.nftper.infra.event_bus import EventBus
from src.nftper.infra.history import MemoryHistory
from src.nftper.services.lifecycle_controller import RequestLifecycleController
from src.nftper.services.navigation_sync import NavigationStateSync
from src.nftper.tests.fakes import EventRecorder, FakeTransport, RecordingUnloadHook


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus) -> EventRecorder:
    rec = EventRecorder()
    bus.subscribe_all(rec)
    return rec


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def unload_hook() -> RecordingUnloadHook:
    return RecordingUnloadHook()


@pytest.fixture
async def controller(transport, bus, unload_hook):
    """
    Контроллер с быстрым интервалом поллинга.
    На teardown aclose() бросает активную задачу.
    """
    async with RequestLifecycleController(transport, bus, poll_interval=0.01, unload_hook=unload_hook) as c:
        yield c


@pytest.fixture
def make_navigation(controller, bus):
    def _make(initial_url: str = "/", chains=("ethereum",)):
        history = MemoryHistory(initial_url)
        nav = NavigationStateSync(
            controller,
            history,
            bus,
            default_timeframe="1m",
            chains_provider=lambda: list(chains),
        )
        return nav, history

    return _make

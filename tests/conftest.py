import pytest

from interval_queue.scheduler import Scheduler


@pytest.fixture
def make_scheduler():
    """Factory for schedulers whose pending timers are cleared after the test."""

    created = []

    def _make(*args, **kwargs) -> Scheduler:
        scheduler = Scheduler(*args, **kwargs)
        created.append(scheduler)
        return scheduler

    yield _make
    for scheduler in created:
        scheduler.clear_loop()

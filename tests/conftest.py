import datetime

import pytest

from notedesk.helpers import StoreContext

START = datetime.datetime(2024, 6, 15, 14, 30, tzinfo=datetime.timezone.utc)


def ticking_clock():
    """
    A clock which starts at ``START`` and moves forward one second each time it is read.
    """
    current = [START]

    def clock():
        value = current[0]
        current[0] = value + datetime.timedelta(seconds=1)
        return value

    return clock


@pytest.fixture
def context(tmp_path) -> StoreContext:
    store_context = StoreContext(tmp_path, clock=ticking_clock())
    store_context.ensure()
    return store_context

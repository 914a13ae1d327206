import pytest

import queueLL
from harness import Harness


@pytest.fixture
def harness():
    """Provide a harness that never injects failures."""
    return Harness()


@pytest.fixture
def q(harness):
    """Provide an empty queue and check for leaks once the test is done."""
    queue = queueLL.create(harness)
    yield queue
    queueLL.destroy(queue)
    assert harness.allocated == 0


@pytest.fixture
def make_queue(harness):
    """Build queues from a list of values, freeing them after the test."""
    made = []

    def _make(values):
        queue = queueLL.create(harness)
        for value in values:
            assert queueLL.insert_tail(queue, value)
        made.append(queue)
        return queue

    yield _make
    for queue in made:
        queueLL.destroy(queue)
    assert harness.allocated == 0

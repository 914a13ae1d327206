import logging

import pytest

from harness import AllocationFailure, Harness, HarnessError


class TestHarness:
    """Test cases for the allocation ledger."""

    def test_initialization(self, harness):
        """A new harness has nothing allocated."""
        assert harness.fail_probability == 0
        assert harness.allocated == 0
        assert harness.allocated_bytes == 0

    def test_invalid_probability(self):
        """Probabilities outside 0-100 are rejected."""
        with pytest.raises(AssertionError):
            Harness(fail_probability=101)

    def test_malloc_and_free(self, harness):
        """Blocks are counted until freed."""
        a = harness.malloc(10)
        b = harness.malloc(6)
        assert a != b
        assert harness.allocated == 2
        assert harness.allocated_bytes == 16

        harness.free(a)
        assert harness.allocated == 1
        assert harness.allocated_bytes == 6
        harness.free(b)
        assert harness.allocated == 0

    def test_double_free(self, harness):
        """Freeing a block twice is an error."""
        block = harness.malloc(1)
        harness.free(block)
        with pytest.raises(HarnessError):
            harness.free(block)

    def test_free_unknown_block(self, harness):
        """Freeing a block that was never allocated is an error."""
        with pytest.raises(HarnessError):
            harness.free(12345)

    def test_always_fail(self):
        """With probability 100 every allocation fails."""
        harness = Harness(fail_probability=100)
        with pytest.raises(AllocationFailure):
            harness.malloc(8)
        assert harness.allocated == 0

    def test_allocation_failure_is_memory_error(self):
        """AllocationFailure can be handled as a MemoryError."""
        with pytest.raises(MemoryError):
            Harness(fail_probability=100).malloc(8)

    def test_seeded_failures_repeat(self):
        """The same seed injects failures at the same points."""
        def pattern(seed):
            harness = Harness(fail_probability=50, seed=seed)
            result = []
            for _ in range(50):
                try:
                    harness.malloc(1)
                    result.append(True)
                except AllocationFailure:
                    result.append(False)
            return result

        first = pattern(42)
        assert first == pattern(42)
        assert True in first and False in first

    def test_noallocate(self, harness):
        """malloc and free are rejected inside the no-allocate guard."""
        block = harness.malloc(4)
        with harness.noallocate():
            with pytest.raises(HarnessError):
                harness.malloc(4)
            with pytest.raises(HarnessError):
                harness.free(block)
        harness.free(block)
        assert harness.allocated == 0

    def test_noallocate_nested(self, harness):
        """Leaving an inner guard keeps the outer one active."""
        with harness.noallocate():
            with harness.noallocate():
                pass
            with pytest.raises(HarnessError):
                harness.malloc(1)
        harness.free(harness.malloc(1))

    def test_injected_failure_is_logged(self, caplog):
        """Injected failures are logged at debug level."""
        harness = Harness(fail_probability=100)
        with caplog.at_level(logging.DEBUG, logger="harness"):
            with pytest.raises(AllocationFailure):
                harness.malloc(3)
        assert "injected failure" in caplog.text

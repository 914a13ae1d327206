import random
import logging
import itertools
from contextlib import contextmanager
from typing import Dict

logger = logging.getLogger(__name__)


class HarnessError(RuntimeError):
    pass


class AllocationFailure(MemoryError):
    ''' allocation could not be satisfied '''


class Harness:
    ''' allocation ledger with fault injection '''

    def __init__(self, fail_probability: int = 0, seed=None) -> None:
        assert 0 <= fail_probability <= 100, 'fail probability must be a percentage'
        self.fail_probability: int = fail_probability
        self.random = random.Random(seed)
        self.blocks: Dict[int, int] = {}  # block id -> size [bytes]
        self._ids = itertools.count(1)
        self._noallocate: bool = False

    @property
    def allocated(self) -> int:
        ''' number of live blocks '''
        return len(self.blocks)

    @property
    def allocated_bytes(self) -> int:
        return sum(self.blocks.values())

    def fail_allocation(self) -> bool:
        if self.fail_probability == 0:
            return False
        return self.random.random() * 100 < self.fail_probability

    def malloc(self, size: int) -> int:
        if self._noallocate:
            raise HarnessError('allocation attempted while allocations are disabled')

        if self.fail_allocation():
            logger.debug(f'malloc:{size}:injected failure')
            raise AllocationFailure(f'could not allocate {size} bytes')

        block = next(self._ids)
        self.blocks[block] = size
        logger.debug(f'malloc:{size}:block {block}')
        return block

    def free(self, block: int) -> None:
        if self._noallocate:
            raise HarnessError('free attempted while allocations are disabled')
        if block not in self.blocks:
            raise HarnessError(f'free of unallocated block {block}')

        del self.blocks[block]
        logger.debug(f'free:block {block}')

    @contextmanager
    def noallocate(self):
        ''' forbid malloc/free for the duration of the block '''

        previous = self._noallocate
        self._noallocate = True
        try:
            yield self
        finally:
            self._noallocate = previous


default = Harness()

import argparse
import inspect
import shlex
import sys
import logging
from typing import List, Optional

import queueLL
import utils
from harness import Harness
from queueLL import Queue

logger = logging.getLogger(__name__)

DEFAULT_BUFSIZE = 1024


class UsageError(Exception):
    pass


def to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise UsageError(f'not a number: {text}') from None


class Driver:
    ''' runs queue commands one line at a time '''

    HELP = {
        'new': 'create a new queue',
        'free': 'delete the queue',
        'ih': 'ih str [n]: insert str at head n times',
        'it': 'it str [n]: insert str at tail n times',
        'rh': 'rh [str]: remove from head, optionally comparing with str',
        'size': 'show the queue size',
        'reverse': 'reverse the queue',
        'sort': 'sort the queue in ascending order',
        'show': 'show the queue contents',
        'fail': 'fail percent: set the allocation failure probability',
        'help': 'show this help',
        'quit': 'free the queue and exit',
    }

    def __init__(self, harness: Harness, bufsize: int = DEFAULT_BUFSIZE, out=None) -> None:
        self.harness: Harness = harness
        self.bufsize: int = bufsize
        self.out = out if out is not None else sys.stdout
        self.q: Optional[Queue] = None
        self.errors: int = 0
        self.done: bool = False

    def report(self, msg: str) -> None:
        print(msg, file=self.out)

    def error(self, msg: str) -> None:
        logger.error(msg)
        self.report(f'ERROR: {msg}')
        self.errors += 1

    def show(self) -> None:
        if self.q is None:
            self.report('q = NULL')
            return
        try:
            utils.check_invariants(self.q)
        except AssertionError as e:
            self.error(f'queue is corrupted: {e}')
            return
        self.report(f'q = [{" ".join(utils.values(self.q))}]')

    def need_queue(self) -> bool:
        if self.q is None:
            self.report('warning: calling operation on null queue')
        return self.q is not None

    def execute(self, line: str) -> None:
        try:
            args = shlex.split(line, comments=True)
        except ValueError as e:
            self.error(f'cannot parse "{line}": {e}')
            return
        if not args:
            return

        logger.debug(f'cmd:{args}')
        name, params = args[0], args[1:]
        handler = getattr(self, f'do_{name}', None)
        if handler is None:
            self.error(f'unknown command "{name}"')
            return

        try:
            inspect.signature(handler).bind(*params)
        except TypeError:
            self.error(f'bad arguments for "{name}": {self.HELP[name]}')
            return

        try:
            handler(*params)
        except UsageError as e:
            self.error(f'bad arguments for "{name}": {e}: {self.HELP[name]}')

    def do_new(self) -> None:
        if self.q is not None:
            queueLL.destroy(self.q)
        self.q = queueLL.create(self.harness)
        if self.q is None:
            self.report('warning: queue allocation failed')
        self.show()

    def do_free(self) -> None:
        queueLL.destroy(self.q)
        self.q = None
        self.show()

    def insert(self, insert, value: str, n: str = '1') -> None:
        count = to_int(n)
        if count < 1:
            raise UsageError(f'count must be positive: {count}')
        self.need_queue()
        for _ in range(count):
            if not insert(self.q, value):
                if self.q is not None:
                    self.report('warning: insertion failed')
                break
        self.show()

    def do_ih(self, value: str, n: str = '1') -> None:
        self.insert(queueLL.insert_head, value, n)

    def do_it(self, value: str, n: str = '1') -> None:
        self.insert(queueLL.insert_tail, value, n)

    def do_rh(self, expected: str = None) -> None:
        if not self.need_queue():
            self.show()
            return

        sp = bytearray(self.bufsize)
        if not queueLL.remove_head(self.q, sp, self.bufsize):
            self.error('removal from empty queue')
        else:
            removed = utils.read_buffer(sp)
            if expected is not None and removed != expected:
                self.error(f'removed value "{removed}", expected "{expected}"')
            else:
                self.report(f'removed {removed} from queue')
        self.show()

    def do_size(self) -> None:
        self.need_queue()
        self.report(f'queue size = {queueLL.size(self.q)}')

    def do_reverse(self) -> None:
        self.need_queue()
        queueLL.reverse(self.q)
        self.show()

    def do_sort(self) -> None:
        self.need_queue()
        queueLL.sort(self.q)
        values = utils.values(self.q)
        if values != sorted(values):
            self.error('queue is not sorted')
        self.show()

    def do_show(self) -> None:
        self.show()

    def do_fail(self, percent: str) -> None:
        probability = to_int(percent)
        if not 0 <= probability <= 100:
            raise UsageError(f'not a percentage: {probability}')
        self.harness.fail_probability = probability
        logger.info(f'allocation failure probability: {probability}%')

    def do_help(self) -> None:
        for name, text in self.HELP.items():
            self.report(f'  {name:<8}| {text}')

    def do_quit(self) -> None:
        self.done = True

    def finish(self) -> None:
        queueLL.destroy(self.q)
        self.q = None
        if self.harness.allocated:
            self.error(f'{self.harness.allocated} blocks still allocated')

    def run(self, lines) -> int:
        for line in lines:
            self.execute(line)
            if self.done:
                break
        self.finish()
        return 1 if self.errors else 0


def main(argv: List[str] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='qtest',
        description='Exercise a linked-list string queue with commands read from stdin.'
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='print debug messages')
    parser.add_argument('-l', '--log', metavar='FILE',
                        help='also write debug messages to FILE')
    parser.add_argument('--fail', type=int, default=0, metavar='PERCENT',
                        help='allocation failure probability')
    parser.add_argument('--seed', type=int, default=None,
                        help='seed for allocation failures')
    parser.add_argument('--bufsize', type=int, default=DEFAULT_BUFSIZE,
                        help='buffer size used by rh')
    args = parser.parse_args(argv)

    if not 0 <= args.fail <= 100:
        parser.error('--fail must be between 0 and 100')
    if args.bufsize < 0:
        parser.error('--bufsize must not be negative')

    root = logging.getLogger()
    level = root.level
    root.setLevel(logging.DEBUG)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if args.verbose else logging.WARNING)
    handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    handlers = [handler]
    if args.log:
        file_handler = logging.FileHandler(args.log)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)
    for h in handlers:
        root.addHandler(h)

    try:
        driver = Driver(Harness(args.fail, args.seed), args.bufsize)
        return driver.run(sys.stdin)
    finally:
        for h in handlers:
            root.removeHandler(h)
            h.close()
        root.setLevel(level)


if __name__ == '__main__':
    sys.exit(main())

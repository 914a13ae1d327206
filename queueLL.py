from typing import Iterator, Optional

import utils
from harness import AllocationFailure, Harness, default as default_harness

ELEMENT_SIZE = 16  # [bytes] charged per element node
QUEUE_SIZE = 24  # [bytes] charged per queue header


class QueueError(Exception):
    pass


class InvalidQueue(QueueError):
    ''' queue is absent or the operation precondition does not hold '''


class Element:
    def __init__(self, value: str, block: int, value_block: int):
        self.value: str = value
        self.next: Optional[Element] = None
        self.block: int = block
        self.value_block: int = value_block


class Queue:
    ''' queue of strings implemented using a singly linked list '''

    def __init__(self, harness: Harness = None):
        self.harness: Harness = harness if harness is not None else default_harness
        self.block: int = self.harness.malloc(QUEUE_SIZE)
        self.head: Optional[Element] = None
        self.tail: Optional[Element] = None
        self.size: int = 0

    def __len__(self):
        return self.size

    def __iter__(self) -> Iterator[str]:
        node = self.head
        while node is not None:
            yield node.value
            node = node.next

    def __repr__(self):
        return f'Queue({list(self)!r})'

    def is_empty(self):
        return self.head is None and self.tail is None

    def first(self) -> str:
        if self.is_empty():
            raise InvalidQueue('first of empty queue')
        return self.head.value

    def last(self) -> str:
        if self.is_empty():
            raise InvalidQueue('last of empty queue')
        return self.tail.value

    def new_element(self, value: str) -> Element:
        ''' allocate the node and a private copy of value; nothing leaks on failure '''

        length = len(utils.encode_value(value)) + 1

        block = self.harness.malloc(ELEMENT_SIZE)
        try:
            value_block = self.harness.malloc(length)
        except AllocationFailure:
            self.harness.free(block)
            raise
        return Element(value, block, value_block)

    def release(self, node: Element) -> None:
        self.harness.free(node.value_block)
        self.harness.free(node.block)
        node.next = None

    def insert_head(self, value: str) -> None:
        node = self.new_element(value)
        node.next = self.head
        self.head = node
        if self.tail is None:
            self.tail = node
        self.size += 1

    def insert_tail(self, value: str) -> None:
        node = self.new_element(value)
        if self.tail is None:
            self.head = self.tail = node
        else:
            self.tail.next = node
            self.tail = node
        self.size += 1

    def remove_head(self, sp: bytearray = None, bufsize: int = 0) -> str:
        '''
        detach the head element and free it.
        If sp is given, at most bufsize-1 bytes of the value are copied into it
        followed by a NUL; longer values are truncated silently.
        '''

        if self.head is None:
            raise InvalidQueue('remove from empty queue')

        node = self.head
        if sp is not None:
            utils.copy_to_buffer(sp, node.value, bufsize)

        self.head = node.next
        if self.head is None:
            self.tail = None
        self.size -= 1

        value = node.value
        self.release(node)
        return value

    def clear(self) -> None:
        while self.head is not None:
            node = self.head
            self.head = node.next
            self.release(node)
        self.tail = None
        self.size = 0

    def free(self) -> None:
        ''' release every element and then the queue itself '''

        self.clear()
        if self.block is not None:
            self.harness.free(self.block)
            self.block = None

    def reverse(self) -> None:
        if self.size <= 1:
            return

        with self.harness.noallocate():
            prev = None
            node = self.head
            self.tail = self.head
            while node is not None:
                following = node.next
                node.next = prev
                prev = node
                node = following
            self.head = prev

    def sort(self) -> None:
        ''' stable merge sort by value, ascending '''

        if self.size <= 1:
            return

        with self.harness.noallocate():
            self.head = merge_sort(self.head)
            node = self.head
            while node.next is not None:
                node = node.next
            self.tail = node


def split(head: Element) -> Element:
    ''' cut the list after its midpoint and return the head of the second half '''

    slow = head
    fast = head.next
    while fast is not None and fast.next is not None:
        slow = slow.next
        fast = fast.next.next

    second = slow.next
    slow.next = None
    return second


def merge(l1: Optional[Element], l2: Optional[Element]) -> Optional[Element]:
    if l1 is None:
        return l2
    if l2 is None:
        return l1

    # ties are taken from l1 so that equal values keep their order
    if l2.value < l1.value:
        head, l2 = l2, l2.next
    else:
        head, l1 = l1, l1.next

    node = head
    while l1 is not None and l2 is not None:
        if l2.value < l1.value:
            node.next = l2
            l2 = l2.next
        else:
            node.next = l1
            l1 = l1.next
        node = node.next

    node.next = l1 if l1 is not None else l2
    return head


def merge_sort(head: Optional[Element]) -> Optional[Element]:
    if head is None or head.next is None:
        return head

    second = split(head)
    return merge(merge_sort(head), merge_sort(second))


# functional interface: failures are reported through the return value

def create(harness: Harness = None) -> Optional[Queue]:
    try:
        return Queue(harness)
    except AllocationFailure:
        return None


def destroy(q: Optional[Queue]) -> None:
    if q is None:
        return
    q.free()


def insert_head(q: Optional[Queue], s: str) -> bool:
    if q is None:
        return False
    try:
        q.insert_head(s)
    except AllocationFailure:
        return False
    return True


def insert_tail(q: Optional[Queue], s: str) -> bool:
    if q is None:
        return False
    try:
        q.insert_tail(s)
    except AllocationFailure:
        return False
    return True


def remove_head(q: Optional[Queue], sp: bytearray = None, bufsize: int = 0) -> bool:
    if q is None:
        return False
    try:
        q.remove_head(sp, bufsize)
    except InvalidQueue:
        return False
    return True


def size(q: Optional[Queue]) -> int:
    if q is None:
        return 0
    return q.size


def reverse(q: Optional[Queue]) -> None:
    if q is not None:
        q.reverse()


def sort(q: Optional[Queue]) -> None:
    if q is not None:
        q.sort()

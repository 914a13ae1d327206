from typing import List, Optional


def encode_value(value: str) -> bytes:
    ''' UTF-8 bytes of value; lone surrogates are kept as-is '''
    return value.encode('utf-8', 'surrogatepass')


def copy_to_buffer(sp: bytearray, value: str, bufsize: int) -> None:
    ''' copy at most bufsize-1 bytes of value into sp, NUL padded and terminated '''

    if bufsize <= 0:
        return

    data = encode_value(value)[:bufsize - 1]
    sp[0:bufsize] = data + bytes(bufsize - len(data))


def read_buffer(sp: bytearray) -> str:
    end = sp.find(0)
    if end < 0:
        end = len(sp)
    return bytes(sp[:end]).decode(errors='replace')


def values(q) -> List[str]:
    if q is None:
        return []

    result = []
    node = q.head
    while node is not None:
        result.append(node.value)
        node = node.next
    return result


def check_invariants(q) -> None:
    ''' walk the list and assert the structural invariants of a queue '''

    if q is None:
        return

    if q.size == 0:
        assert q.head is None, 'empty queue has a head'
        assert q.tail is None, 'empty queue has a tail'
        return

    assert q.head is not None, f'queue of size {q.size} has no head'
    assert q.tail is not None, f'queue of size {q.size} has no tail'
    assert q.tail.next is None, 'tail is linked to another element'

    count = 0
    last: Optional[object] = None
    node = q.head
    while node is not None:
        count += 1
        assert count <= q.size, f'more than {q.size} elements reachable (cycle?)'
        last = node
        node = node.next

    assert count == q.size, f'size is {q.size} but {count} elements reachable'
    assert last is q.tail, 'tail is not the last reachable element'

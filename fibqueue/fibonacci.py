"""A pure Python implementation of a mergeable priority queue backed by a `Fibonacci Heap`_.

Insertion, union, and :meth:`FibonacciHeap.decrease_key` run in amortized constant time, and
:meth:`FibonacciHeap.extract_min` runs in amortized logarithmic time. Each item stored in the heap is both its own
payload and its own sort key, so items must be hashable, totally ordered, and unique while they are in the heap. An
index from each item to its node lets :meth:`FibonacciHeap.decrease_key` and :meth:`FibonacciHeap.delete` find
arbitrary items in constant time.

.. _Fibonacci Heap:
    https://en.wikipedia.org/wiki/Fibonacci_heap

"""

import logging
import math
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, TypeVar

from typing_extensions import Protocol


__all__ = [
    'Comparable', 'DuplicateItemError', 'FibonacciHeap', 'FibonacciHeapError', 'HeapNode', 'ItemNotFoundError',
    'KeyIncreaseError'
]

log = logging.getLogger(__name__)


class Comparable(Protocol):
    """A protocol for items that can be ordered in a :class:`FibonacciHeap`."""
    def __lt__(self, other: Any) -> bool:
        ...


T = TypeVar('T', bound=Comparable)

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2


class FibonacciHeapError(Exception):
    """Base class for errors raised by a :class:`FibonacciHeap`."""
    pass


class ItemNotFoundError(FibonacciHeapError, KeyError):
    """Raised when an operation refers to an item that is not in the heap."""
    pass


class DuplicateItemError(FibonacciHeapError, ValueError):
    """Raised when an item would be added to a heap that already contains it."""
    pass


class KeyIncreaseError(FibonacciHeapError, ValueError):
    """Raised when :meth:`FibonacciHeap.decrease_key` is asked to increase an item."""
    pass


class HeapNode(Generic[T]):
    """A node in a :class:`FibonacciHeap`."""
    def __init__(self, item: Optional[T]):
        """Initializes a Fibonacci heap node.

        Args:
            item: The heap item associated with the node. The item is also the key used for sorting.

        """
        self.item: Optional[T] = item
        """The item associated with this heap node, or :const:`None` if it has been decreased to minus infinity."""
        self.parent: Optional[HeapNode[T]] = None
        """The node's parent."""
        self.child: Optional[HeapNode[T]] = None
        """One of the node's children; the rest are reachable from its siblings."""
        self.left: HeapNode[T] = self
        """The left sibling of this node, or :obj:`self` if it has no siblings."""
        self.right: HeapNode[T] = self
        """The right sibling of this node, or :obj:`self` if it has no siblings."""
        self.degree: int = 0
        """The degree of this node (*i.e.*, the number of its children)."""
        self.mark: bool = False
        """Whether this node has lost a child since it last became the child of another node."""
        self.minus_infinity: bool = False
        """Whether this node has been decreased to minus infinity.

        A node with this flag set compares less than every node without it. It is only set by
        :meth:`FibonacciHeap.decrease_key` when the new item is :const:`None`, usually as the first step of
        :meth:`FibonacciHeap.delete`.

        """

    def add_child(self, node: 'HeapNode[T]'):
        """Adds a root node as a child of this heap node, incrementing its degree."""
        assert node is not self
        node.parent = self
        if self.child is None:
            node.left = node.right = node
            self.child = node
        else:
            node.right = self.child
            node.left = self.child.left
            self.child.left.right = node
            self.child.left = node
        self.degree += 1

    def remove_child(self, node: 'HeapNode[T]'):
        """Removes a child from this heap node, decrementing its degree.

        The removed node is left as a singleton ring without a parent.

        """
        assert node.parent is self and self.child is not None
        if node.right is node:
            self.child = None
        else:
            if self.child is node:
                self.child = node.right
            node.left.right = node.right
            node.right.left = node.left
        node.left = node.right = node
        node.parent = None
        self.degree -= 1

    @property
    def siblings(self) -> Iterator['HeapNode[T]']:
        """Iterates over this node's siblings, not including the node itself."""
        node = self.right
        while node is not self:
            yield node
            node = node.right

    @property
    def children(self) -> Iterator['HeapNode[T]']:
        """Iterates over this node's direct children."""
        if self.child is not None:
            yield self.child
            yield from self.child.siblings

    def __iter__(self) -> Iterator['HeapNode[T]']:
        """Iterates over this node and all of its descendants."""
        yield self
        for child in self.children:
            yield from child

    def __lt__(self, other: 'HeapNode[T]') -> bool:
        if self.minus_infinity or other.minus_infinity:
            return self.minus_infinity and not other.minus_infinity
        return self.item < other.item

    def __le__(self, other: 'HeapNode[T]') -> bool:
        return not other < self

    def __repr__(self):
        if self.minus_infinity:
            return f"{self.__class__.__name__}(-inf)"
        return f"{self.__class__.__name__}(item={self.item!r})"


class FibonacciHeap(Generic[T]):
    """A Fibonacci Heap of unique items.

    Examples:

        >>> heap = FibonacciHeap([5, 3, 8, 1])
        >>> heap.find_min()
        1
        >>> heap.decrease_key(8, 2)
        >>> [heap.extract_min() for _ in range(len(heap))]
        [1, 2, 3, 5]

    """
    def __init__(self, items: Iterable[T] = ()):
        """Initializes a Fibonacci heap.

        Args:
            items: Optional initial items to insert.

        Raises:
            DuplicateItemError: If :obj:`items` contains the same item more than once.

        """
        self._min: Optional[HeapNode[T]] = None
        self._n: int = 0
        self._index: Dict[T, HeapNode[T]] = {}
        for item in items:
            self.insert(item)

    def clear(self):
        """Removes all items from this heap."""
        self._min = None
        self._n = 0
        self._index = {}

    def insert(self, item: T) -> HeapNode[T]:
        """Adds a new item to this heap.

        Args:
            item: The item to add. It must not already be in the heap.

        Returns:
            HeapNode[T]: The heap node created to store the new item.

        Raises:
            ValueError: If :obj:`item` is :const:`None`, which is reserved for :meth:`decrease_key`.
            DuplicateItemError: If :obj:`item` is already in the heap.

        """
        if item is None:
            raise ValueError("None cannot be inserted into a heap")
        elif item in self._index:
            raise DuplicateItemError(f"{item!r} is already in the heap")
        node = HeapNode(item)
        is_min = self._min is None or node < self._min
        self._append_root(node)
        self._index[item] = node
        if is_min:
            self._min = node
        self._n += 1
        return node

    def find_min(self) -> Optional[T]:
        """Returns the smallest item of the heap without removing it, or :const:`None` if the heap is empty."""
        if self._min is None:
            return None
        return self._min.item

    def extract_min(self) -> Optional[T]:
        """Removes and returns the smallest item of the heap.

        Returns:
            Optional[T]: The smallest item, or :const:`None` if the heap is empty. If the smallest node was decreased
            to minus infinity, its item is :const:`None` as well.

        """
        z = self._min
        if z is None:
            return None
        while z.child is not None:
            child = z.child
            z.remove_child(child)
            child.mark = False
            self._append_root(child)
        if z.right is z:
            self._min = None
        else:
            self._min = z.right
            self._remove_root(z)
            self._consolidate()
        if not z.minus_infinity:
            del self._index[z.item]
        self._n -= 1
        return z.item

    def decrease_key(self, item: T, new_item: Optional[T]):
        """Replaces an item in the heap with a smaller one.

        Args:
            item: The item to replace.
            new_item: The replacement item, or :const:`None` to decrease the item below every other item in the heap.
                A node decreased to :const:`None` is no longer indexed, so it can only be removed with
                :meth:`FibonacciHeap.extract_min`.

        Raises:
            ItemNotFoundError: If :obj:`item` is not in the heap.
            KeyIncreaseError: If :obj:`new_item` is greater than :obj:`item`.
            DuplicateItemError: If :obj:`new_item` is a different item that is already in the heap.

        """
        x = self._index.get(item)
        if x is None:
            raise ItemNotFoundError(item)
        if new_item is None:
            del self._index[item]
            x.item = None
            x.minus_infinity = True
        else:
            if new_item == x.item:
                return
            elif x.item < new_item:
                raise KeyIncreaseError(f"The key can only decrease! New item {new_item!r} > old item {x.item!r}.")
            elif new_item in self._index:
                raise DuplicateItemError(f"{new_item!r} is already in the heap")
            del self._index[item]
            self._index[new_item] = x
            x.item = new_item
        y = x.parent
        if y is not None and (x.minus_infinity or x < y):
            self._cut(x, y)
            self._cascading_cut(y)
        if x.minus_infinity or x < self._min:
            self._min = x

    def delete(self, item: T):
        """Removes the given item from this heap.

        Raises:
            ItemNotFoundError: If :obj:`item` is not in the heap.

        """
        self.decrease_key(item, None)
        self.extract_min()

    def discard(self, item: T) -> bool:
        """Removes the given item from this heap if it is present.

        Returns:
            bool: Whether the item was removed.

        """
        if item not in self._index:
            return False
        self.delete(item)
        return True

    def union(self, other: 'FibonacciHeap[T]'):
        """Merges another heap into this one in constant time.

        All of the items of :obj:`other` are moved into this heap, and :obj:`other` is left empty.

        Raises:
            ValueError: If :obj:`other` is this heap.
            DuplicateItemError: If the heaps have an item in common. Neither heap is modified in that case.

        """
        if other is self:
            raise ValueError("A heap cannot be merged with itself")
        shared = self._index.keys() & other._index.keys()
        if shared:
            raise DuplicateItemError(f"Both heaps contain {', '.join(map(repr, shared))}")
        log.debug(f"Merging a heap of {other._n} items into a heap of {self._n} items")
        if other._min is not None:
            if self._min is None:
                self._min = other._min
            else:
                is_min = other._min < self._min
                self._splice(self._min, other._min)
                if is_min:
                    self._min = other._min
        self._n += other._n
        self._index.update(other._index)
        other.clear()

    def __iadd__(self, other: 'FibonacciHeap[T]') -> 'FibonacciHeap[T]':
        self.union(other)
        return self

    def size(self) -> int:
        """Returns the number of items in this heap."""
        return self._n

    def is_empty(self) -> bool:
        """Returns whether this heap has no items."""
        return self._n == 0

    @property
    def min_node(self) -> Optional[HeapNode[T]]:
        """Returns the heap node associated with the smallest item in the heap, without removing it."""
        return self._min

    @property
    def _roots(self) -> Iterator[HeapNode[T]]:
        if self._min is not None:
            yield self._min
            yield from self._min.siblings

    def __len__(self):
        return self._n

    def __bool__(self):
        return self._n > 0

    def __contains__(self, item) -> bool:
        return item in self._index

    def __iter__(self) -> Iterator[T]:
        """Iterates over the items in this heap in no particular order."""
        for node in self.nodes():
            yield node.item

    def nodes(self) -> Iterator[HeapNode[T]]:
        """Iterates over all of the heap nodes in this heap."""
        for root in list(self._roots):
            yield from root

    def __repr__(self):
        return f"{self.__class__.__name__}({list(self)!r})"

    def _max_degree(self) -> int:
        # A node of degree k roots a tree of at least F(k + 2) >= phi**k nodes
        return int(math.log(self._n, GOLDEN_RATIO)) + 2

    def _consolidate(self):
        a: List[Optional[HeapNode[T]]] = [None] * self._max_degree()
        for x in list(self._roots):
            d = x.degree
            while a[d] is not None and a[d] is not x:
                y = a[d]
                if y < x:
                    x, y = y, x
                self._link(y, x)
                a[d] = None
                d += 1
            a[d] = x
        self._min = None
        for root in a:
            if root is not None:
                root.left = root.right = root
                self._append_root(root)
                if root < self._min:
                    self._min = root
        log.debug(f"Consolidated {self._n - 1} items into {sum(1 for root in a if root is not None)} trees")

    def _link(self, y: HeapNode[T], x: HeapNode[T]):
        """Makes root :obj:`y` a child of root :obj:`x`."""
        self._remove_root(y)
        x.add_child(y)
        y.mark = False

    def _cut(self, x: HeapNode[T], y: HeapNode[T]):
        y.remove_child(x)
        self._append_root(x)
        x.mark = False

    def _cascading_cut(self, y: HeapNode[T]):
        z = y.parent
        while z is not None:
            if not y.mark:
                y.mark = True
                return
            self._cut(y, z)
            y, z = z, z.parent

    def _append_root(self, node: HeapNode[T]):
        """Splices a singleton node into the root ring, to the left of the current minimum."""
        if self._min is None:
            self._min = node
        else:
            node.right = self._min
            node.left = self._min.left
            self._min.left.right = node
            self._min.left = node

    @staticmethod
    def _remove_root(node: HeapNode[T]):
        node.left.right = node.right
        node.right.left = node.left
        node.left = node.right = node

    @staticmethod
    def _splice(first: HeapNode[T], second: HeapNode[T]):
        """Joins two disjoint rings into one."""
        first_last = first.left
        second_last = second.left
        first_last.right = second
        second.left = first_last
        second_last.right = first
        first.left = second_last

import random
from typing import List, Set
from unittest import TestCase

from tqdm import trange

from fibqueue.fibonacci import DuplicateItemError, FibonacciHeap, HeapNode, ItemNotFoundError, KeyIncreaseError


class TestFibonacciHeap(TestCase):
    @classmethod
    def setUpClass(cls):
        cls.random_list: List[int] = random.sample(range(100000), 5000)
        cls.sorted_list: List[int] = sorted(cls.random_list)

    def random_heap(self) -> FibonacciHeap[int]:
        heap: FibonacciHeap[int] = FibonacciHeap()
        for rand_int in self.random_list:
            heap.insert(rand_int)
        return heap

    def assertHeapValid(self, heap: FibonacciHeap):
        roots = list(heap._roots)
        if not heap:
            self.assertIsNone(heap.min_node)
            self.assertEqual([], roots)
            return
        for root in roots:
            self.assertIsNone(root.parent)
            self.assertFalse(root.mark)
            self.assertIs(root.right.left, root)
            self.assertIs(root.left.right, root)
        nodes = list(heap.nodes())
        self.assertEqual(len(heap), len(nodes))
        self.assertEqual(len(heap), len(heap._index))
        for node in nodes:
            self.assertIs(heap._index[node.item], node)
            children = list(node.children)
            self.assertEqual(node.degree, len(children))
            for child in children:
                self.assertIs(child.parent, node)
                self.assertIs(child.right.left, child)
                self.assertLessEqual(node.item, child.item)
        self.assertEqual(min(node.item for node in nodes), heap.find_min())

    def test_heap(self):
        heap = self.random_heap()
        self.assertEqual(len(self.random_list), len(heap))
        heap_sorted = [heap.extract_min() for _ in range(len(self.random_list))]
        self.assertEqual(self.sorted_list, heap_sorted)
        self.assertTrue(heap.is_empty())
        self.assertEqual(0, heap.size())

    def test_concrete_scenario(self):
        heap = FibonacciHeap()
        for i in (5, 3, 8, 1):
            heap.insert(i)
        self.assertEqual(1, heap.find_min())
        self.assertEqual(1, heap.extract_min())
        self.assertHeapValid(heap)
        self.assertEqual(3, heap.extract_min())
        self.assertEqual(5, heap.extract_min())
        self.assertEqual(8, heap.extract_min())
        self.assertTrue(heap.is_empty())
        self.assertHeapValid(heap)

    def test_decrease_composite_item(self):
        heap = FibonacciHeap([(10, 'a'), (20, 'b'), (30, 'c')])
        heap.decrease_key((30, 'c'), (5, 'c'))
        self.assertEqual((5, 'c'), heap.find_min())
        self.assertEqual([(5, 'c'), (10, 'a'), (20, 'b')], [heap.extract_min() for _ in range(3)])

    def test_empty_heap(self):
        heap = FibonacciHeap()
        self.assertIsNone(heap.find_min())
        self.assertIsNone(heap.extract_min())
        self.assertFalse(heap)
        self.assertEqual(0, len(heap))
        self.assertEqual([], list(heap))

    def test_single_item(self):
        heap = FibonacciHeap([42])
        self.assertIn(42, heap)
        self.assertEqual(42, heap.extract_min())
        self.assertNotIn(42, heap)
        self.assertIsNone(heap.find_min())

    def test_duplicate_items(self):
        heap = FibonacciHeap([2, 1])
        with self.assertRaises(DuplicateItemError):
            heap.insert(2)
        self.assertEqual(2, len(heap))
        self.assertHeapValid(heap)
        with self.assertRaises(DuplicateItemError):
            FibonacciHeap([1, 2, 1])

    def test_insert_none(self):
        with self.assertRaises(ValueError):
            FibonacciHeap([None])
        heap = FibonacciHeap([2, 1])
        with self.assertRaises(ValueError):
            heap.insert(None)
        self.assertEqual(2, len(heap))
        self.assertHeapValid(heap)

    def test_insert_incomparable_item(self):
        heap = FibonacciHeap([1, 2, 3])
        with self.assertRaises(TypeError):
            heap.insert('x')
        self.assertNotIn('x', heap)
        self.assertEqual(3, len(heap))
        self.assertHeapValid(heap)
        self.assertEqual([1, 2, 3], [heap.extract_min() for _ in range(3)])

    def test_union_incomparable_items(self):
        heap = FibonacciHeap([1, 2])
        other = FibonacciHeap(['a', 'b'])
        with self.assertRaises(TypeError):
            heap.union(other)
        self.assertEqual(2, len(heap))
        self.assertEqual(2, len(other))
        self.assertHeapValid(heap)
        self.assertHeapValid(other)

    def test_node_traversal(self):
        heap = self.random_heap()
        self.assertEqual(sum(1 for _ in heap.nodes()), len(heap))
        for _ in range(10):
            heap.extract_min()
        self.assertHeapValid(heap)
        self.assertEqual(set(self.sorted_list[10:]), set(heap))

    def test_consolidation_degrees(self):
        heap = FibonacciHeap(range(1024))
        heap.extract_min()
        degrees = [root.degree for root in heap._roots]
        self.assertEqual(len(degrees), len(set(degrees)))
        # 1023 = 0b1111111111, so consolidation leaves one binomial tree per set bit
        self.assertEqual(list(range(10)), sorted(degrees))
        self.assertHeapValid(heap)

    def test_decrease_key(self):
        heap = self.random_heap()
        heap.extract_min()
        present: Set[int] = set(self.sorted_list[1:])
        for _ in trange(len(self.random_list) // 10, leave=False):
            item = random.choice(self.sorted_list)
            if item not in present:
                continue
            new_item = item - random.randint(1, 1000)
            if new_item in present:
                continue
            heap.decrease_key(item, new_item)
            present.remove(item)
            present.add(new_item)
            self.assertEqual(min(present), heap.find_min())
            self.assertNotIn(item, heap)
            self.assertIn(new_item, heap)
        self.assertHeapValid(heap)
        self.assertEqual(sorted(present), [heap.extract_min() for _ in range(len(present))])

    def test_decrease_key_to_new_minimum(self):
        heap = FibonacciHeap(range(100))
        heap.extract_min()
        heap.decrease_key(77, -5)
        self.assertEqual(-5, heap.find_min())
        self.assertHeapValid(heap)

    def test_decrease_key_equal(self):
        heap = FibonacciHeap(range(10))
        heap.decrease_key(5, 5)
        self.assertIn(5, heap)
        self.assertHeapValid(heap)

    def test_increase_key(self):
        heap = FibonacciHeap(range(10))
        with self.assertRaises(KeyIncreaseError):
            heap.decrease_key(5, 50)
        with self.assertRaises(ValueError):
            heap.decrease_key(5, 6)
        self.assertIn(5, heap)
        self.assertNotIn(50, heap)
        self.assertHeapValid(heap)

    def test_decrease_key_to_present_item(self):
        heap = FibonacciHeap(range(10))
        with self.assertRaises(DuplicateItemError):
            heap.decrease_key(5, 3)
        self.assertIn(5, heap)
        self.assertEqual(10, len(heap))

    def test_decrease_key_missing(self):
        heap = FibonacciHeap(range(10))
        with self.assertRaises(ItemNotFoundError):
            heap.decrease_key(100, 1)
        with self.assertRaises(KeyError):
            heap.decrease_key(100, 1)

    def test_decrease_key_to_minus_infinity(self):
        heap = FibonacciHeap(range(100))
        heap.extract_min()
        node: HeapNode[int] = heap._index[50]
        heap.decrease_key(50, None)
        self.assertIs(node, heap.min_node)
        self.assertTrue(node.minus_infinity)
        self.assertNotIn(50, heap)
        self.assertIsNone(heap.find_min())
        self.assertIsNone(heap.extract_min())
        self.assertEqual(98, len(heap))
        self.assertHeapValid(heap)
        self.assertEqual(1, heap.find_min())

    def test_delete(self):
        heap = self.random_heap()
        present = set(self.random_list)
        for i in trange(len(self.random_list) // 20, leave=False):
            item = random.choice(list(heap))
            heap.delete(item)
            present.remove(item)
            self.assertNotIn(item, heap)
            self.assertEqual(len(self.random_list) - i - 1, len(heap))
        self.assertHeapValid(heap)
        self.assertEqual(sorted(present), [heap.extract_min() for _ in range(len(present))])

    def test_delete_then_absent(self):
        heap = FibonacciHeap(range(20))
        heap.extract_min()
        heap.delete(7)
        with self.assertRaises(ItemNotFoundError):
            heap.decrease_key(7, 3)
        with self.assertRaises(ItemNotFoundError):
            heap.delete(7)
        self.assertFalse(heap.discard(7))
        self.assertTrue(heap.discard(8))
        self.assertEqual(17, len(heap))
        self.assertHeapValid(heap)

    def test_delete_after_pending_minus_infinity(self):
        heap = FibonacciHeap(range(10))
        heap.decrease_key(3, None)
        heap.delete(6)
        self.assertNotIn(6, heap)
        self.assertIsNone(heap.extract_min())
        self.assertEqual([0, 1, 2, 4, 5, 7, 8, 9], [heap.extract_min() for _ in range(len(heap))])

    def test_removed_node_is_unlinked(self):
        heap = FibonacciHeap(range(64))
        heap.extract_min()
        node = heap._index[1]
        heap.extract_min()
        self.assertIsNone(node.parent)
        self.assertIsNone(node.child)
        self.assertIs(node, node.left)
        self.assertIs(node, node.right)

    def test_cascading_cut(self):
        heap = FibonacciHeap(range(33))
        heap.extract_min()
        # A single binomial tree of 32 nodes rooted at 1
        self.assertEqual(1, sum(1 for _ in heap._roots))
        parent = next(n for n in heap.nodes() if n.parent is not None and n.degree >= 2)
        grandparent = parent.parent
        first, second = list(parent.children)[:2]
        heap.decrease_key(first.item, -1)
        self.assertIsNone(first.parent)
        self.assertTrue(parent.mark)
        self.assertIs(grandparent, parent.parent)
        heap.decrease_key(second.item, -2)
        self.assertIsNone(second.parent)
        self.assertIsNone(parent.parent)
        self.assertFalse(parent.mark)
        self.assertEqual(-2, heap.find_min())
        self.assertHeapValid(heap)
        self.assertEqual(sorted(heap), [heap.extract_min() for _ in range(len(heap))])

    def test_union(self):
        evens = FibonacciHeap(range(0, 100, 2))
        odds = FibonacciHeap(range(1, 100, 2))
        evens.extract_min()
        odds.extract_min()
        evens.union(odds)
        self.assertEqual(98, len(evens))
        self.assertEqual(2, evens.find_min())
        self.assertTrue(odds.is_empty())
        self.assertIsNone(odds.find_min())
        self.assertHeapValid(evens)
        evens.decrease_key(99, -1)
        self.assertEqual(-1, evens.find_min())
        expected = sorted([-1] + [i for i in range(2, 99)])
        self.assertEqual(expected, [evens.extract_min() for _ in range(len(evens))])

    def test_union_with_empty(self):
        heap = FibonacciHeap([3, 1, 2])
        heap.union(FibonacciHeap())
        self.assertEqual(3, len(heap))
        empty = FibonacciHeap()
        empty += heap
        self.assertEqual(3, len(empty))
        self.assertEqual(1, empty.find_min())
        self.assertTrue(heap.is_empty())
        empty.decrease_key(3, 0)
        self.assertEqual([0, 1, 2], [empty.extract_min() for _ in range(3)])

    def test_union_overlapping(self):
        first = FibonacciHeap([1, 2, 3])
        second = FibonacciHeap([3, 4])
        with self.assertRaises(DuplicateItemError):
            first.union(second)
        self.assertEqual(3, len(first))
        self.assertEqual(2, len(second))
        with self.assertRaises(ValueError):
            first.union(first)

    def test_randomized_operations(self):
        heap: FibonacciHeap[int] = FibonacciHeap()
        reference: Set[int] = set()
        for step in trange(3000, leave=False):
            op = random.random()
            if op < 0.45 or not reference:
                item = random.randint(-100000, 100000)
                if item not in reference:
                    heap.insert(item)
                    reference.add(item)
            elif op < 0.65:
                self.assertEqual(min(reference), heap.extract_min())
                reference.remove(min(reference))
            elif op < 0.85:
                item = random.choice(tuple(reference))
                new_item = item - random.randint(1, 5000)
                if new_item not in reference:
                    heap.decrease_key(item, new_item)
                    reference.remove(item)
                    reference.add(new_item)
            elif op < 0.95:
                item = random.choice(tuple(reference))
                heap.delete(item)
                reference.remove(item)
            else:
                other_items = {random.randint(200000, 300000) for _ in range(random.randint(0, 20))}
                other_items -= reference
                heap.union(FibonacciHeap(other_items))
                reference |= other_items
            self.assertEqual(len(reference), len(heap))
            if reference:
                self.assertEqual(min(reference), heap.find_min())
            else:
                self.assertIsNone(heap.find_min())
            if step % 500 == 0:
                self.assertHeapValid(heap)
        self.assertHeapValid(heap)

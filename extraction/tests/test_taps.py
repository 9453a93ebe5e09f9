"""Tests for tap markers and the catalog."""

import unittest

from blocks.model import Group, Leaf, Parallel, TapId
from blocks.routing import wire
from extraction.taps import (
    CATALOG,
    TAP_1,
    TAP_9,
    catalog_tap,
    is_tap,
    make_tap,
    named_tap,
    tap,
    tap_id_of,
    taps_in,
)


class TestTapConstruction(unittest.TestCase):
    def test_make_tap_is_a_sink(self) -> None:
        leaf = make_tap("probe")
        self.assertEqual(leaf.arity, (1, 0))
        self.assertTrue(is_tap(leaf))
        self.assertEqual(leaf.tap.name, "probe")

    def test_same_display_name_never_collides(self) -> None:
        self.assertNotEqual(named_tap("probe"), named_tap("probe"))
        self.assertNotEqual(make_tap("probe"), make_tap("probe"))

    def test_tap_reuses_identifier(self) -> None:
        tap_id = named_tap("probe")
        self.assertEqual(tap(tap_id), tap(tap_id))
        self.assertIs(tap(tap_id).tap, tap_id)

    def test_bad_arguments(self) -> None:
        with self.assertRaises(TypeError):
            named_tap(3)
        with self.assertRaises(TypeError):
            tap("probe")

    def test_tap_id_of(self) -> None:
        tap_id = named_tap("probe")
        self.assertIs(tap_id_of(tap_id), tap_id)
        self.assertIs(tap_id_of(tap(tap_id)), tap_id)
        self.assertIsNone(tap_id_of(wire()))
        self.assertIsNone(tap_id_of("probe"))

    def test_plain_leaf_is_not_a_tap(self) -> None:
        self.assertFalse(is_tap(Leaf("tap", 1, 0)))
        self.assertFalse(is_tap(Group("probe", wire())))


class TestCatalog(unittest.TestCase):
    def test_nine_distinct_entries(self) -> None:
        self.assertEqual(len(CATALOG), 9)
        self.assertEqual(len({id(t) for t in CATALOG}), 9)
        self.assertEqual([t.name for t in CATALOG], [f"tap{i}" for i in range(1, 10)])

    def test_lookup(self) -> None:
        self.assertIs(catalog_tap("tap1"), TAP_1)
        self.assertIs(catalog_tap("tap9"), TAP_9)
        with self.assertRaises(KeyError):
            catalog_tap("tap10")

    def test_catalog_entries_are_tap_ids(self) -> None:
        self.assertTrue(all(isinstance(t, TapId) for t in CATALOG))


class TestTapsIn(unittest.TestCase):
    def test_counts_occurrences_including_opaque(self) -> None:
        shared = named_tap("shared")
        other = named_tap("other")
        tree = Parallel(Parallel(tap(shared), tap(shared)), Group("g", tap(other)))
        counts = taps_in(tree)
        self.assertEqual(counts[shared], 2)
        self.assertEqual(counts[other], 1)


if __name__ == "__main__":
    unittest.main()

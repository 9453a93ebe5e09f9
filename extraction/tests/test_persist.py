"""Tests for the persist adapter."""

import unittest

from blocks.model import Diagnostic, Leaf, Parallel, Sequential, Split
from blocks.routing import attach, bus, wire
from blocks.signals import Apply, Input, trace
from extraction.diagnostics import (
    ErrorKind,
    NoOutputToAttachError,
    OpaqueConstructError,
    TapNotFoundError,
)
from extraction.persist import attach_chain, persist
from extraction.taps import named_tap, tap


def tee(probe):
    return Split(wire(), Parallel(wire(), tap(probe)))


class TestAttachChain(unittest.TestCase):
    def test_single(self) -> None:
        self.assertEqual(attach_chain(1), attach())

    def test_order_of_forcing(self) -> None:
        result = trace(attach_chain(3))
        self.assertEqual(result.outputs, [Input(0)])
        self.assertEqual(result.forced, [Input(1), Input(2), Input(3)])

    def test_zero_rejected(self) -> None:
        with self.assertRaises(ValueError):
            attach_chain(0)


class TestPersist(unittest.TestCase):
    def _tree(self):
        a, b = named_tap("a"), named_tap("b")
        f = Leaf("f", 1, 1)
        tree = Parallel(
            Parallel(Sequential(tee(a), f), Sequential(wire(), tap(b))),
            Leaf("g", 1, 1),
        )
        return tree, a, b

    def test_arity_is_preserved(self) -> None:
        tree, a, b = self._tree()
        self.assertEqual(tree.arity, (3, 2))
        result = persist(tree, [a, b], strict=True)
        self.assertEqual(result.arity, (3, 2))

    def test_taps_are_forced_onto_last_output(self) -> None:
        tree, a, b = self._tree()
        before = trace(tree)
        after = trace(persist(tree, [a, b], strict=True))
        self.assertEqual(after.outputs, before.outputs)
        self.assertEqual(after.forced, [before.probes[a], before.probes[b]])

    def test_single_target(self) -> None:
        tree, a, _ = self._tree()
        result = persist(tree, a, strict=True)
        self.assertEqual(result.arity, tree.arity)
        self.assertEqual(trace(result).forced, [Input(0)])

    def test_single_output_tree(self) -> None:
        probe = named_tap("p")
        tree = Sequential(tee(probe), Leaf("f", 1, 1))
        result = persist(tree, [probe], strict=True)
        self.assertEqual(result.arity, (1, 1))
        self.assertEqual(trace(result).outputs, [Apply("f", 0, (Input(0),))])

    def test_no_targets_is_identity(self) -> None:
        tree, _, _ = self._tree()
        self.assertIs(persist(tree, [], strict=True), tree)

    def test_zero_output_tree_rejected(self) -> None:
        probe = named_tap("p")
        with self.assertRaises(NoOutputToAttachError):
            persist(tap(probe), probe, strict=True)

    def test_zero_output_tree_diagnostic(self) -> None:
        probe = named_tap("p")
        result = persist(Parallel(tap(probe), tap(named_tap("q"))), probe, strict=False)
        self.assertIsInstance(result, Diagnostic)
        self.assertEqual(result.kind, ErrorKind.NO_OUTPUT_TO_ATTACH.value)

    def test_extraction_errors_pass_through(self) -> None:
        with self.assertRaises(TapNotFoundError):
            persist(bus(2), named_tap("missing"), strict=True)

    def test_bad_target_checked_first(self) -> None:
        probe = named_tap("p")
        sink_only = persist(tap(probe), 42, strict=False)
        self.assertEqual(sink_only.kind, ErrorKind.OPAQUE_CONSTRUCT.value)

        broken = Diagnostic(ErrorKind.NOT_FOUND.value, "missing")
        self.assertIs(persist(broken, probe, strict=True), broken)
        with self.assertRaises(OpaqueConstructError):
            persist(broken, [probe, "q"], strict=True)


if __name__ == "__main__":
    unittest.main()

"""Pruebas de la transformación de vista, el historial y la detección de clics."""

import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from core.history import HistorySnapshotter
from core.hit_test import atom_at, bond_at
from core.model import Atom, Bond, ElementType, Molecule, new_molecule
from core.view import MAX_SCALE, MIN_SCALE, ViewTransform


class ViewTransformTest(unittest.TestCase):
    def test_screen_and_model_are_inverse(self):
        view = ViewTransform(scale=2.0, offset_x=10.0, offset_y=-5.0)
        self.assertEqual(view.to_screen(3.0, 4.0), (16.0, 3.0))
        self.assertEqual(view.to_model(16.0, 3.0), (3.0, 4.0))

    def test_pan_moves_offset_in_screen_pixels(self):
        view = ViewTransform(scale=3.0).panned(12.0, -4.0)
        self.assertEqual((view.offset_x, view.offset_y), (12.0, -4.0))
        self.assertEqual(view.scale, 3.0)

    def test_zoom_keeps_anchor_fixed(self):
        """Verifica que el punto bajo el cursor no se desplaza al hacer zoom.

        Returns:
            None.

        """
        view = ViewTransform(scale=1.0, offset_x=20.0, offset_y=30.0)
        anchor = (200.0, 150.0)
        before = view.to_model(*anchor)
        zoomed = view.zoomed(1.1, *anchor)
        after = zoomed.to_model(*anchor)
        self.assertAlmostEqual(zoomed.scale, 1.1)
        self.assertAlmostEqual(before[0], after[0])
        self.assertAlmostEqual(before[1], after[1])

    def test_zoom_is_clamped(self):
        view = ViewTransform()
        for _ in range(100):
            view = view.zoomed(1.1, 0.0, 0.0)
        self.assertEqual(view.scale, MAX_SCALE)
        for _ in range(200):
            view = view.zoomed(0.9, 0.0, 0.0)
        self.assertEqual(view.scale, MIN_SCALE)
        self.assertIs(view.zoomed(0.0, 0.0, 0.0), view)


class HistorySnapshotterTest(unittest.TestCase):
    def test_push_and_pop_are_lifo(self):
        history = HistorySnapshotter()
        first, second = new_molecule("a"), new_molecule("b")
        history.push(first)
        history.push(second)
        self.assertIs(history.peek(), second)
        self.assertIs(history.pop(), second)
        self.assertIs(history.pop(), first)
        self.assertIsNone(history.pop())
        self.assertFalse(history.can_undo)

    def test_limit_drops_oldest(self):
        history = HistorySnapshotter(limit=2)
        molecules = [new_molecule(str(i)) for i in range(3)]
        for molecule in molecules:
            history.push(molecule)
        self.assertEqual(len(history), 2)
        self.assertIs(history.pop(), molecules[2])
        self.assertIs(history.pop(), molecules[1])


class HitTestTest(unittest.TestCase):
    def setUp(self):
        self.molecule = Molecule(
            id="m",
            atoms=(
                Atom("a1", ElementType.C, 100.0, 100.0),
                Atom("a2", ElementType.O, 200.0, 100.0),
                Atom("a3", ElementType.H, 110.0, 100.0),
            ),
            bonds=(Bond("b1", "a1", "a2", 1), Bond("b2", "a2", "ghost", 1)),
        )

    def test_topmost_atom_wins(self):
        self.assertEqual(atom_at(self.molecule, 108.0, 100.0), "a3")
        self.assertEqual(atom_at(self.molecule, 200.0, 120.0), "a2")
        self.assertIsNone(atom_at(self.molecule, 150.0, 150.0))

    def test_bond_hit_uses_segment_distance(self):
        self.assertEqual(bond_at(self.molecule, 150.0, 104.0), "b1")
        self.assertIsNone(bond_at(self.molecule, 150.0, 120.0))


if __name__ == "__main__":
    unittest.main()

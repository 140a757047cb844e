"""Pruebas del documento molecular (aplicación de intenciones e historial)."""

import os
import random
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from core.document import MoleculeDocument
from core.interaction import CycleBond, DragStarted, MoveAtom, PanView, RemoveAtom, RemoveBond
from core.model import new_molecule


class MoleculeDocumentTest(unittest.TestCase):
    def setUp(self):
        self.document = MoleculeDocument(canvas_size=(600.0, 400.0))
        self.rng = random.Random(1)
        self.seen = []
        self.document.subscribe(self.seen.append)

    def test_new_atoms_land_near_canvas_center(self):
        for _ in range(20):
            atom_id = self.document.add_atom("C", rng=self.rng, jitter=60.0)
            atom = self.document.molecule.get_atom(atom_id)
            self.assertTrue(270.0 <= atom.x <= 330.0)
            self.assertTrue(170.0 <= atom.y <= 230.0)

    def test_only_count_changes_push_history(self):
        """Verifica que mover átomos o ciclar órdenes no ensucia el historial.

        Returns:
            None.

        """
        a = self.document.add_atom("C", rng=self.rng)
        b = self.document.add_atom("O", rng=self.rng)
        self.assertEqual(len(self.document.history), 2)

        self.document.apply(CycleBond(a, b))
        self.assertEqual(len(self.document.history), 3)
        self.document.apply(CycleBond(a, b))
        self.document.apply(MoveAtom(a, 10.0, 10.0))
        self.document.rename("Formaldehyde")
        self.assertEqual(len(self.document.history), 3)

        self.document.apply(RemoveBond(self.document.molecule.bonds[0].id))
        self.assertEqual(len(self.document.history), 4)

    def test_undo_restores_previous_structure(self):
        a = self.document.add_atom("C", rng=self.rng)
        b = self.document.add_atom("O", rng=self.rng)
        self.document.apply(CycleBond(a, b))
        self.document.apply(RemoveAtom(b))
        self.assertEqual(len(self.document.molecule.atoms), 1)

        self.assertTrue(self.document.undo())
        self.assertEqual(len(self.document.molecule.atoms), 2)
        self.assertEqual(len(self.document.molecule.bonds), 1)

    def test_undo_on_empty_history_returns_false(self):
        self.assertFalse(self.document.undo())

    def test_noop_intents_do_not_notify(self):
        a = self.document.add_atom("C", rng=self.rng)
        count = len(self.seen)
        self.assertFalse(self.document.apply(CycleBond(a, a)))
        self.assertFalse(self.document.apply(RemoveAtom("missing")))
        self.assertFalse(self.document.apply(DragStarted(a)))
        self.assertEqual(len(self.seen), count)

    def test_pan_changes_view_only(self):
        molecule = self.document.molecule
        self.assertTrue(self.document.apply(PanView(5.0, -3.0)))
        self.assertIs(self.document.molecule, molecule)
        self.assertEqual((self.document.view.offset_x, self.document.view.offset_y), (5.0, -3.0))

    def test_unknown_intent_raises(self):
        with self.assertRaises(TypeError):
            self.document.apply("boom")

    def test_clear_is_undoable_and_load_resets_history(self):
        self.document.add_atom("C", rng=self.rng)
        self.document.clear()
        self.assertEqual(self.document.molecule.atoms, ())
        self.document.undo()
        self.assertEqual(len(self.document.molecule.atoms), 1)

        self.document.apply(PanView(1.0, 1.0))
        other = new_molecule("Other")
        self.document.load(other)
        self.assertIs(self.document.molecule, other)
        self.assertFalse(self.document.history.can_undo)
        self.assertEqual(self.document.view.offset_x, 0.0)

    def test_listeners_receive_latest_molecule(self):
        self.document.add_atom("N", rng=self.rng)
        self.assertIs(self.seen[-1], self.document.molecule)
        self.document.unsubscribe(self.seen.append)
        self.document.add_atom("N", rng=self.rng)
        self.assertEqual(len(self.seen[-1].atoms), 1)


if __name__ == "__main__":
    unittest.main()

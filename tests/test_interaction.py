"""Pruebas de la máquina de estados de interacción junto con el documento."""

import os
import random
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from core.document import MoleculeDocument
from core.interaction import (
    CycleBond,
    DragEnded,
    DragStarted,
    EditMode,
    InteractionController,
    MoveAtom,
    PanView,
    RemoveAtom,
    SelectionChanged,
)
from core.model import find_bond_between


class InteractionTestCase(unittest.TestCase):
    def setUp(self):
        self.document = MoleculeDocument()
        self.controller = InteractionController(self.document)
        self.rng = random.Random(0)

    def add(self, element, x, y):
        atom_id = self.document.add_atom(element, rng=self.rng)
        self.document.replace_positions({atom_id: (x, y)})
        return atom_id

    def screen_of(self, atom_id):
        atom = self.document.molecule.get_atom(atom_id)
        return self.document.view.to_screen(atom.x, atom.y)

    def click_at(self, sx, sy, pointer_id=0):
        intents = self.controller.pointer_down(sx, sy, pointer_id)
        intents += self.controller.pointer_up(sx, sy, pointer_id)
        self.document.apply_all(intents)
        return intents

    def click(self, atom_id):
        return self.click_at(*self.screen_of(atom_id))

    def drag(self, atom_id, dx, dy, steps=3):
        sx, sy = self.screen_of(atom_id)
        intents = self.controller.pointer_down(sx, sy)
        for i in range(1, steps + 1):
            intents += self.controller.pointer_move(sx + dx * i / steps, sy + dy * i / steps)
        intents += self.controller.pointer_up(sx + dx, sy + dy)
        self.document.apply_all(intents)
        return intents


class BuildModeTest(InteractionTestCase):
    def test_bond_cycle_click_sequence(self):
        """Verifica el escenario C-O: clics repetidos sobre O recorren 1, 2, 3, 1.

        Returns:
            None.

        """
        c = self.add("C", 200.0, 200.0)
        o = self.add("O", 300.0, 200.0)

        self.click(c)
        self.assertEqual(self.controller.pending_bond_source_id, c)

        orders = []
        for _ in range(4):
            self.click(o)
            self.assertEqual(self.controller.pending_bond_source_id, c)
            orders.append(find_bond_between(self.document.molecule, c, o).order)
        self.assertEqual(orders, [1, 2, 3, 1])
        self.assertEqual(len(self.document.molecule.bonds), 1)

    def test_clicking_selected_atom_deselects(self):
        c = self.add("C", 200.0, 200.0)
        intents = self.click(c)
        self.assertIn(SelectionChanged(c), intents)
        intents = self.click(c)
        self.assertIn(SelectionChanged(None), intents)
        self.assertIsNone(self.controller.pending_bond_source_id)
        self.assertEqual(self.controller.state.phase, "idle")

    def test_third_atom_bonds_to_pending_source(self):
        a = self.add("C", 100.0, 100.0)
        b = self.add("C", 200.0, 100.0)
        c = self.add("C", 300.0, 100.0)
        self.click(a)
        self.click(b)
        self.click(c)
        molecule = self.document.molecule
        self.assertIsNotNone(find_bond_between(molecule, a, b))
        self.assertIsNotNone(find_bond_between(molecule, a, c))
        self.assertIsNone(find_bond_between(molecule, b, c))
        self.assertEqual(self.controller.pending_bond_source_id, a)

    def test_click_on_bond_cycles_its_order(self):
        a = self.add("C", 100.0, 100.0)
        b = self.add("C", 200.0, 100.0)
        self.click(a)
        self.click(b)
        self.click(a)
        intents = self.click_at(150.0, 100.0)
        self.assertEqual(intents, [CycleBond(a, b)])
        self.assertEqual(find_bond_between(self.document.molecule, a, b).order, 2)

    def test_drag_moves_atom_and_suppresses_click(self):
        c = self.add("C", 200.0, 200.0)
        intents = self.drag(c, 40.0, -20.0)
        atom = self.document.molecule.get_atom(c)
        self.assertEqual((atom.x, atom.y), (240.0, 180.0))
        self.assertEqual(intents[0], DragStarted(c))
        self.assertEqual(intents[-1], DragEnded(c, moved=True))
        self.assertFalse(any(isinstance(i, SelectionChanged) for i in intents))
        self.assertIsNone(self.controller.pending_bond_source_id)

    def test_drag_does_not_push_history(self):
        c = self.add("C", 200.0, 200.0)
        depth = len(self.document.history)
        self.drag(c, 15.0, 15.0)
        self.assertEqual(len(self.document.history), depth)

    def test_drag_threshold_keeps_small_jitter_a_click(self):
        self.controller.drag_threshold = 5.0
        c = self.add("C", 200.0, 200.0)
        intents = self.drag(c, 2.0, 1.0)
        self.assertFalse(any(isinstance(i, MoveAtom) for i in intents))
        self.assertEqual(self.controller.pending_bond_source_id, c)

    def test_drag_maps_through_view_transform(self):
        c = self.add("C", 100.0, 100.0)
        self.document.zoom(2.0, 0.0, 0.0)
        self.drag(c, 20.0, 0.0)
        self.assertAlmostEqual(self.document.molecule.get_atom(c).x, 110.0)

    def test_empty_canvas_pans(self):
        intents = self.controller.pointer_down(10.0, 10.0)
        self.assertEqual(self.controller.state.phase, "panning")
        intents += self.controller.pointer_move(15.0, 12.0)
        intents += self.controller.pointer_move(25.0, 12.0)
        intents += self.controller.pointer_up(25.0, 12.0)
        self.document.apply_all(intents)
        self.assertEqual([i for i in intents if isinstance(i, PanView)], [PanView(5.0, 2.0), PanView(10.0, 0.0)])
        self.assertEqual((self.document.view.offset_x, self.document.view.offset_y), (15.0, 2.0))
        self.assertEqual(self.controller.state.phase, "idle")

    def test_pointer_capture_ignores_other_pointers(self):
        c = self.add("C", 200.0, 200.0)
        self.add("O", 400.0, 200.0)
        sx, sy = self.screen_of(c)
        self.controller.pointer_down(sx, sy, pointer_id=1)
        self.assertEqual(self.controller.pointer_down(400.0, 200.0, pointer_id=2), [])
        self.assertEqual(self.controller.pointer_move(0.0, 0.0, pointer_id=2), [])
        self.assertEqual(self.controller.pointer_up(0.0, 0.0, pointer_id=2), [])
        self.assertTrue(self.controller.has_capture)
        intents = self.controller.pointer_up(sx, sy, pointer_id=1)
        self.assertIn(SelectionChanged(c), intents)

    def test_stale_selection_is_dropped_after_undo(self):
        c = self.add("C", 200.0, 200.0)
        self.click(c)
        self.document.undo()
        self.assertFalse(self.document.molecule.has_atom(c))
        intents = self.click_at(50.0, 50.0)
        self.assertIn(SelectionChanged(None), intents)


class EraseModeTest(InteractionTestCase):
    def test_erase_middle_of_chain(self):
        """Verifica que borrar B en A-B-C deja {A, C} sin enlaces.

        Returns:
            None.

        """
        a = self.add("C", 100.0, 100.0)
        b = self.add("C", 200.0, 100.0)
        c = self.add("C", 300.0, 100.0)
        self.click(a)
        self.click(b)
        self.click(a)
        self.click(b)
        self.click(c)
        self.click(b)
        self.assertEqual(len(self.document.molecule.bonds), 2)

        self.document.apply_all(self.controller.set_mode(EditMode.ERASE))
        self.click(b)
        molecule = self.document.molecule
        self.assertEqual({atom.id for atom in molecule.atoms}, {a, c})
        self.assertEqual(molecule.bonds, ())

    def test_erase_disables_dragging(self):
        a = self.add("C", 100.0, 100.0)
        self.controller.set_mode(EditMode.ERASE)
        sx, sy = self.screen_of(a)
        intents = self.controller.pointer_down(sx, sy)
        intents += self.controller.pointer_move(sx + 30, sy)
        intents += self.controller.pointer_up(sx + 30, sy)
        self.document.apply_all(intents)
        self.assertEqual(intents, [])
        self.assertEqual(self.document.molecule.get_atom(a).x, 100.0)
        self.assertTrue(self.document.molecule.has_atom(a))

    def test_erase_click_on_bond_removes_it(self):
        a = self.add("C", 100.0, 100.0)
        b = self.add("O", 200.0, 100.0)
        self.click(a)
        self.click(b)
        self.controller.set_mode(EditMode.ERASE)
        self.click_at(150.0, 101.0)
        self.assertEqual(self.document.molecule.bonds, ())
        self.assertEqual(len(self.document.molecule.atoms), 2)

    def test_switching_mode_clears_pending_selection(self):
        a = self.add("C", 100.0, 100.0)
        self.click(a)
        intents = self.controller.set_mode(EditMode.ERASE)
        self.assertEqual(intents, [SelectionChanged(None)])
        self.assertIsNone(self.controller.pending_bond_source_id)

    def test_erasing_pending_atom_clears_selection(self):
        a = self.add("C", 100.0, 100.0)
        self.click(a)
        self.controller.state.mode = EditMode.ERASE
        intents = self.click(a)
        self.assertEqual(intents, [SelectionChanged(None), RemoveAtom(a)])
        self.assertIsNone(self.controller.pending_bond_source_id)


if __name__ == "__main__":
    unittest.main()

"""Pruebas del motor de disposición por fuerzas."""

import math
import os
import random
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from core.layout import (
    LayoutParams,
    Simulation,
    auto_layout,
    build_links,
    build_nodes,
    clamp_positions,
)
from core.model import Atom, Bond, ElementType, Molecule, add_atom, add_or_cycle_bond, new_molecule
from core.quadtree import QuadTree, _Quad


def _water() -> Molecule:
    return Molecule(
        id="water",
        name="Water",
        atoms=(
            Atom("1", ElementType.O),
            Atom("2", ElementType.H),
            Atom("3", ElementType.H),
        ),
        bonds=(Bond("b1", "1", "2", 1), Bond("b2", "1", "3", 1)),
    )


def _ring(size: int) -> Molecule:
    molecule = new_molecule("ring", molecule_id="ring")
    for _ in range(size):
        molecule = add_atom(molecule, "C", (0.0, 0.0))
    ids = [a.id for a in molecule.atoms]
    for i, atom_id in enumerate(ids):
        molecule = add_or_cycle_bond(molecule, atom_id, ids[(i + 1) % size])
    return molecule


class BatchLayoutTest(unittest.TestCase):
    def test_positions_stay_inside_margins(self):
        """Verifica que todo átomo queda en [margen, dimensión - margen].

        Returns:
            None.

        """
        for seed in range(5):
            laid_out = auto_layout(_ring(12), 400, 300, seed=seed)
            for atom in laid_out.atoms:
                self.assertGreaterEqual(atom.x, 30.0)
                self.assertLessEqual(atom.x, 370.0)
                self.assertGreaterEqual(atom.y, 30.0)
                self.assertLessEqual(atom.y, 270.0)

    def test_no_two_atoms_share_a_coordinate(self):
        for seed in range(5):
            laid_out = auto_layout(_ring(6), 400, 300, seed=seed)
            points = {(a.x, a.y) for a in laid_out.atoms}
            self.assertEqual(len(points), len(laid_out.atoms))

    def test_crowded_tiny_canvas_does_not_collapse(self):
        # Muchos átomos en un lienzo minúsculo terminan todos contra los bordes.
        molecule = new_molecule(molecule_id="crowd")
        for _ in range(20):
            molecule = add_atom(molecule, "H", (0.0, 0.0))
        laid_out = auto_layout(molecule, 80, 80, seed=1)
        points = {(a.x, a.y) for a in laid_out.atoms}
        self.assertEqual(len(points), 20)
        for x, y in points:
            self.assertTrue(30.0 <= x <= 50.0 and 30.0 <= y <= 50.0)

    def test_layout_does_not_touch_topology(self):
        molecule = _water()
        laid_out = auto_layout(molecule, 400, 300, seed=2)
        self.assertEqual(laid_out.bonds, molecule.bonds)
        self.assertEqual([a.id for a in laid_out.atoms], ["1", "2", "3"])
        self.assertEqual(laid_out.id, molecule.id)

    def test_bonded_atoms_settle_near_link_distance(self):
        laid_out = auto_layout(_water(), 400, 300, seed=4)
        o = laid_out.get_atom("1")
        for h_id in ("2", "3"):
            h = laid_out.get_atom(h_id)
            distance = math.hypot(o.x - h.x, o.y - h.y)
            self.assertGreater(distance, 30.0)
            self.assertLess(distance, 120.0)

    def test_empty_molecule_is_returned_unchanged(self):
        empty = new_molecule()
        self.assertIs(auto_layout(empty, 400, 300), empty)

    def test_large_molecule_uses_approximation_and_stays_finite(self):
        molecule = _ring(80)
        laid_out = auto_layout(molecule, 600, 400, seed=9)
        for atom in laid_out.atoms:
            self.assertTrue(math.isfinite(atom.x) and math.isfinite(atom.y))


class SimulationTest(unittest.TestCase):
    def test_dangling_bonds_are_dropped_before_simulating(self):
        molecule = Molecule(
            id="m",
            atoms=(Atom("a1", ElementType.C), Atom("a2", ElementType.C)),
            bonds=(Bond("b1", "a1", "a2"), Bond("b2", "a1", "ghost")),
        )
        params = LayoutParams()
        nodes = build_nodes(molecule, 100, 100, params, random.Random(0))
        links = build_links(molecule, nodes, params)
        self.assertEqual(len(links), 1)
        self.assertEqual((links[0].source, links[0].target), (0, 1))

    def test_water_topology_survives_live_ticks(self):
        """Verifica que tras muchos tics los enlaces 1-2 y 1-3 siguen intactos.

        Returns:
            None.

        """
        molecule = _water()
        simulation = Simulation(molecule, 400, 300, params=LayoutParams.live(), seed=5)
        for _ in range(120):
            simulation.tick()
            molecule = simulation.apply_to(molecule)
            self.assertEqual(
                [(b.source_atom_id, b.target_atom_id, b.order) for b in molecule.bonds],
                [("1", "2", 1), ("1", "3", 1)],
            )

    def test_pinned_node_does_not_move(self):
        simulation = Simulation(_water(), 400, 300, seed=1)
        simulation.pin("2", 10.0, 20.0)
        simulation.tick(50)
        self.assertEqual(simulation.positions()["2"], (10.0, 20.0))
        self.assertAlmostEqual(simulation.alpha_target, 0.3)

        simulation.unpin("2")
        self.assertEqual(simulation.alpha_target, 0.0)
        simulation.tick(5)
        self.assertNotEqual(simulation.positions()["2"], (10.0, 20.0))

    def test_keep_positions_starts_from_atom_coordinates(self):
        molecule = Molecule(
            id="m",
            atoms=(Atom("a1", ElementType.C, 100.0, 50.0), Atom("a2", ElementType.O, 200.0, 80.0)),
        )
        simulation = Simulation(molecule, 400, 300, keep_positions=True)
        self.assertEqual(simulation.positions(), {"a1": (100.0, 50.0), "a2": (200.0, 80.0)})

    def test_coincident_points_stay_finite(self):
        molecule = Molecule(
            id="m",
            atoms=tuple(Atom(f"a{i}", ElementType.C, 5.0, 5.0) for i in range(6)),
        )
        simulation = Simulation(molecule, 200, 200, keep_positions=True, seed=3)
        simulation.tick(30)
        points = simulation.positions().values()
        for x, y in points:
            self.assertTrue(math.isfinite(x) and math.isfinite(y))
        self.assertEqual(len(set(points)), 6)

    def test_stopped_simulation_ignores_ticks(self):
        simulation = Simulation(_water(), 400, 300, seed=1)
        before = simulation.positions()
        simulation.stop()
        simulation.tick(10)
        self.assertEqual(simulation.positions(), before)
        self.assertEqual(simulation.ticks, 0)

    def test_simulation_cools_down(self):
        simulation = Simulation(_water(), 400, 300, seed=1)
        simulation.tick(300)
        self.assertLess(simulation.alpha, 0.01)


class ClampAndTreeTest(unittest.TestCase):
    def test_clamp_separates_points_in_the_same_corner(self):
        clamped = clamp_positions({"a": (-50.0, -50.0), "b": (-80.0, -10.0)}, 200, 200, 30)
        self.assertEqual(clamped["a"], (30.0, 30.0))
        self.assertNotEqual(clamped["a"], clamped["b"])
        for x, y in clamped.values():
            self.assertTrue(30.0 <= x <= 170.0 and 30.0 <= y <= 170.0)

    def test_canvas_narrower_than_margins_keeps_atoms_apart(self):
        molecule = new_molecule("CO")
        molecule = add_atom(molecule, "C", (0.0, 0.0))
        molecule = add_atom(molecule, "O", (0.0, 0.0))
        molecule = add_or_cycle_bond(molecule, "a1", "a2")
        laid_out = auto_layout(molecule, 50, 50, seed=0)
        points = [(a.x, a.y) for a in laid_out.atoms]
        self.assertNotEqual(points[0], points[1])
        for x, y in points:
            self.assertTrue(0.0 <= x <= 50.0 and 0.0 <= y <= 50.0)

    def test_degenerate_axis_scales_instead_of_clipping(self):
        clamped = clamp_positions({"a": (-10.0, 100.0), "b": (60.0, 100.0)}, 50, 200, 30)
        self.assertEqual(clamped["a"], (0.0, 100.0))
        self.assertEqual(clamped["b"], (50.0, 100.0))

    def test_quadtree_repulsion_pushes_nodes_apart(self):
        rng = random.Random(0)
        xs = [float(i % 10) * 20 for i in range(100)]
        ys = [float(i // 10) * 20 for i in range(100)]
        tree = QuadTree(xs, ys)
        dvx, dvy = tree.repulsion(0, -300.0, 1.0, 0.9, rng)
        # El nodo 0 está en la esquina inferior izquierda: se le empuja hacia fuera.
        self.assertLess(dvx, 0.0)
        self.assertLess(dvy, 0.0)

    def test_quadtree_child_insert_creates_missing_children(self):
        tree = QuadTree([], [])
        tree.xs = [1.0, 9.0]
        tree.ys = [1.0, 9.0]
        quad = _Quad(0.0, 0.0, 10.0, 10.0)
        tree._insert_child(quad, 0, 0)
        tree._insert_child(quad, 1, 0)
        self.assertEqual(quad.children[0].points, [0])
        self.assertEqual(quad.children[3].points, [1])
        self.assertIsNone(quad.children[1])


if __name__ == "__main__":
    unittest.main()

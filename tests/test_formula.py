"""Pruebas de fórmula y masa molecular."""

import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from chemcalc import (
    ATOMIC_WEIGHTS,
    element_counts,
    format_formula,
    formula_weight,
    molecular_formula,
    molecular_weight,
)
from core.model import ElementType, add_atom, new_molecule


def _molecule(*elements):
    molecule = new_molecule()
    for element in elements:
        molecule = add_atom(molecule, element, (0.0, 0.0))
    return molecule


class FormulaTest(unittest.TestCase):
    def test_water_formula(self):
        self.assertEqual(molecular_formula(_molecule("O", "H", "H")), "H2O")

    def test_hill_order_with_carbon(self):
        """Verifica el orden de Hill: C, H y luego alfabético.

        Returns:
            None.

        """
        ethanol = _molecule("O", "C", "H", "C", "H", "H", "H", "H", "H")
        self.assertEqual(molecular_formula(ethanol), "C2H6O")
        self.assertEqual(format_formula({"Cl": 1, "C": 1, "H": 3}), "CH3Cl")

    def test_without_carbon_order_is_alphabetical(self):
        self.assertEqual(format_formula({"Na": 1, "Cl": 1}), "ClNa")
        self.assertEqual(format_formula({"O": 4, "S": 1, "H": 2}), "H2O4S")

    def test_empty_molecule_has_empty_formula(self):
        self.assertEqual(molecular_formula(new_molecule()), "")

    def test_molecular_weight_of_water(self):
        water = _molecule("O", "H", "H")
        self.assertAlmostEqual(molecular_weight(water), 18.015, places=2)
        self.assertAlmostEqual(formula_weight(element_counts(water)), molecular_weight(water))
        self.assertEqual(molecular_weight(new_molecule()), 0.0)

    def test_every_palette_element_has_a_weight(self):
        self.assertEqual(set(ATOMIC_WEIGHTS), set(ElementType))

    def test_unknown_weight_raises(self):
        with self.assertRaises(ValueError):
            formula_weight({"Xx": 1})


if __name__ == "__main__":
    unittest.main()

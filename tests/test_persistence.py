"""Pruebas de la biblioteca de moléculas en JSON."""

import json
import os
import sys
import tempfile
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from chemio.errors import LibraryFormatError
from chemio.persistence import MoleculeLibrary, molecule_from_dict, molecule_to_dict
from core.model import Molecule, add_atom, add_or_cycle_bond, new_molecule


def _water():
    molecule = new_molecule("Water", molecule_id="mol-water")
    molecule = add_atom(molecule, "O", (100.0, 100.0))
    molecule = add_atom(molecule, "H", (150.0, 100.0))
    molecule = add_atom(molecule, "H", (75.0, 140.0))
    molecule = add_or_cycle_bond(molecule, "a1", "a2")
    return add_or_cycle_bond(molecule, "a1", "a3")


class MoleculeLibraryTest(unittest.TestCase):
    def test_save_and_load_file(self):
        """Verifica que guardar y cargar conserva átomos, enlaces y fórmula.

        Returns:
            None.

        """
        library = MoleculeLibrary([_water()])
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "library.json")
            library.save_to_file(path)
            loaded = MoleculeLibrary.load_from_file(path)

        self.assertEqual(len(loaded), 1)
        water = loaded.get("mol-water")
        self.assertEqual(water.atoms, _water().atoms)
        self.assertEqual(water.bonds, _water().bonds)
        self.assertEqual(water.formula, "H2O")

    def test_missing_file_gives_empty_library(self):
        with tempfile.TemporaryDirectory() as tmp:
            library = MoleculeLibrary.load_from_file(os.path.join(tmp, "none.json"))
        self.assertEqual(len(library), 0)

    def test_foreign_document_is_rejected(self):
        with self.assertRaises(LibraryFormatError):
            MoleculeLibrary.load_from_dict({"application": "OtherEditor", "molecules": []})

    def test_invalid_json_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "broken.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{not json")
            with self.assertRaises(LibraryFormatError):
                MoleculeLibrary.load_from_file(path)

    def test_hand_edited_entries_are_repaired(self):
        data = molecule_to_dict(_water())
        data["atoms"].append({"id": "a9", "element": "Zz", "x": 0, "y": 0})
        data["bonds"].append({"id": "b9", "source_atom_id": "a1", "target_atom_id": "a9", "order": 1})
        data["bonds"][0]["order"] = 5
        with self.assertLogs("chemio.persistence", level="WARNING"):
            molecule = molecule_from_dict(data)
        self.assertEqual(len(molecule.atoms), 3)
        self.assertEqual([b.id for b in molecule.bonds], ["b1", "b2"])
        self.assertEqual(molecule.bonds[0].order, 1)

    def test_entry_without_id_is_rejected(self):
        with self.assertRaises(LibraryFormatError):
            molecule_from_dict({"name": "x", "atoms": []})

    def test_incomplete_records_are_skipped(self):
        data = molecule_to_dict(_water())
        data["atoms"][1]["x"] = "abc"
        data["atoms"].append({"element": "C", "x": 1, "y": 1})
        data["bonds"].append({"source_atom_id": "a2", "target_atom_id": "a3", "order": 1})
        with self.assertLogs("chemio.persistence", level="WARNING"):
            molecule = molecule_from_dict(data)
        self.assertEqual([a.id for a in molecule.atoms], ["a1", "a2", "a3"])
        self.assertEqual(molecule.get_atom("a2").x, 0.0)
        self.assertEqual([b.id for b in molecule.bonds], ["b1", "b2"])

    def test_broken_entry_does_not_block_library(self):
        payload = MoleculeLibrary([_water()]).save_to_dict()
        payload["molecules"].append({"name": "sin id", "atoms": [{"element": "C"}]})
        payload["molecules"].append("not a molecule")
        payload["molecules"][0]["bonds"].append({"id": "b7"})
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "library.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            with self.assertLogs("chemio.persistence", level="WARNING"):
                library = MoleculeLibrary.load_from_file(path)
        self.assertEqual([m.id for m in library], ["mol-water"])
        self.assertEqual(len(library.get("mol-water").bonds), 2)

    def test_molecules_must_be_a_list(self):
        with self.assertRaises(LibraryFormatError):
            MoleculeLibrary.load_from_dict({"application": "AtomLab", "molecules": {}})

    def test_upsert_replaces_and_remove(self):
        library = MoleculeLibrary()
        library.upsert(_water())
        renamed = _water()
        library.upsert(Molecule(id=renamed.id, name="Agua", atoms=renamed.atoms))
        self.assertEqual(len(library), 1)
        self.assertEqual(library.get("mol-water").name, "Agua")
        self.assertTrue(library.remove("mol-water"))
        self.assertFalse(library.remove("mol-water"))

    def test_saved_document_is_plain_json(self):
        payload = json.dumps(MoleculeLibrary([_water()]).save_to_dict())
        self.assertIn('"application": "AtomLab"', payload)


if __name__ == "__main__":
    unittest.main()

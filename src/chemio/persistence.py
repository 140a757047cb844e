"""Persistencia de la biblioteca de moléculas en archivos JSON.

Este módulo serializa y deserializa la lista de moléculas guardadas (el
inventario) para reconstruirla al abrir la aplicación.
"""

from __future__ import annotations

import json
import logging
import math
import os
from typing import Any, Dict, Iterator, List, Optional

from chemcalc.formula import molecular_formula
from chemio.errors import LibraryFormatError
from core.model import Atom, Bond, Molecule, integrity_errors
from core.sanitize import parse_element, parse_order, repair_molecule

logger = logging.getLogger(__name__)

APPLICATION = "AtomLab"


def molecule_to_dict(molecule: Molecule) -> Dict[str, Any]:
    """Serializa una molécula en un diccionario apto para JSON."""
    return {
        "id": molecule.id,
        "name": molecule.name,
        "formula": molecule.formula,
        "atoms": [
            {"id": atom.id, "element": atom.element.value, "x": atom.x, "y": atom.y}
            for atom in molecule.atoms
        ],
        "bonds": [
            {
                "id": bond.id,
                "source_atom_id": bond.source_atom_id,
                "target_atom_id": bond.target_atom_id,
                "order": bond.order,
            }
            for bond in molecule.bonds
        ],
    }


def _coordinate(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _record_id(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def molecule_from_dict(data: Dict[str, Any]) -> Molecule:
    """Reconstruye una molécula tolerando entradas editadas a mano.

    Se omiten átomos sin ID o con elemento desconocido y enlaces sin ID o
    sin extremos; las coordenadas no numéricas valen 0. Si el resultado
    rompe algún invariante (enlaces colgantes, IDs repetidos) se repara
    descartando lo inválido y se registra un aviso.

    Raises:
        LibraryFormatError: Si la entrada no es un objeto o le falta el ID.
    """
    if not isinstance(data, dict):
        raise LibraryFormatError("Molecule entry is not an object")
    molecule_id = _record_id(data.get("id"))
    if not molecule_id:
        raise LibraryFormatError("Molecule entry without id")

    skipped = 0
    atoms: List[Atom] = []
    for atom_d in _records(data.get("atoms")):
        atom_id = _record_id(atom_d.get("id"))
        element = parse_element(atom_d.get("element"))
        if not atom_id or element is None:
            skipped += 1
            continue
        atoms.append(
            Atom(
                id=atom_id,
                element=element,
                x=_coordinate(atom_d.get("x", 0.0)),
                y=_coordinate(atom_d.get("y", 0.0)),
            )
        )
    bonds: List[Bond] = []
    for bond_d in _records(data.get("bonds")):
        bond_id = _record_id(bond_d.get("id"))
        source = _record_id(bond_d.get("source_atom_id"))
        target = _record_id(bond_d.get("target_atom_id"))
        if not (bond_id and source and target):
            skipped += 1
            continue
        bonds.append(
            Bond(
                id=bond_id,
                source_atom_id=source,
                target_atom_id=target,
                order=parse_order(bond_d.get("order", 1)),
            )
        )
    if skipped:
        logger.warning("Skipped %d incomplete records in molecule %s", skipped, molecule_id)

    formula = data.get("formula")
    molecule = Molecule(
        id=molecule_id,
        name=str(data.get("name") or ""),
        atoms=tuple(atoms),
        bonds=tuple(bonds),
        formula=formula if isinstance(formula, str) else None,
    )
    errors = integrity_errors(molecule)
    if errors:
        logger.warning("Repairing molecule %s: %s", molecule.id, "; ".join(errors))
        molecule = repair_molecule(molecule)
    return molecule


def _records(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class MoleculeLibrary:
    """Inventario de moléculas guardadas, indexado por ID."""

    VERSION = "0.1.0"

    def __init__(self, molecules: Optional[List[Molecule]] = None) -> None:
        self._molecules: Dict[str, Molecule] = {}
        for molecule in molecules or []:
            self.upsert(molecule)

    def __iter__(self) -> Iterator[Molecule]:
        return iter(self._molecules.values())

    def __len__(self) -> int:
        return len(self._molecules)

    def all(self) -> List[Molecule]:
        return list(self._molecules.values())

    def get(self, molecule_id: str) -> Optional[Molecule]:
        return self._molecules.get(molecule_id)

    def upsert(self, molecule: Molecule) -> Molecule:
        """Guarda o reemplaza una molécula; completa la fórmula si falta."""
        if molecule.formula is None:
            molecule = Molecule(
                id=molecule.id,
                name=molecule.name,
                atoms=molecule.atoms,
                bonds=molecule.bonds,
                formula=molecular_formula(molecule),
            )
        self._molecules[molecule.id] = molecule
        return molecule

    def remove(self, molecule_id: str) -> bool:
        return self._molecules.pop(molecule_id, None) is not None

    def save_to_dict(self) -> Dict[str, Any]:
        """Serializa la biblioteca en un diccionario.

        Returns:
            Diccionario serializable con cabecera de aplicación y versión.
        """
        return {
            "application": APPLICATION,
            "version": self.VERSION,
            "molecules": [molecule_to_dict(m) for m in self._molecules.values()],
        }

    @classmethod
    def load_from_dict(cls, data: Dict[str, Any]) -> "MoleculeLibrary":
        """Restaura una biblioteca desde un diccionario.

        Las entradas que no se pueden reconstruir se omiten con un aviso,
        así una molécula dañada no impide abrir el resto.

        Raises:
            LibraryFormatError: Si el documento no corresponde a AtomLab.
        """
        if not isinstance(data, dict) or data.get("application") != APPLICATION:
            raise LibraryFormatError("Not a valid AtomLab library")
        entries = data.get("molecules", [])
        if not isinstance(entries, list):
            raise LibraryFormatError("Library 'molecules' must be a list")
        molecules = []
        for index, entry in enumerate(entries):
            try:
                molecules.append(molecule_from_dict(entry))
            except LibraryFormatError as e:
                logger.warning("Skipping library entry %d: %s", index, e)
        return cls(molecules)

    def save_to_file(self, filepath: str) -> None:
        """Guarda la biblioteca en disco, creando el directorio si hace falta.

        Side Effects:
            Escribe el archivo indicado.
        """
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self.save_to_dict(), f, indent=2)
        logger.info("Saved %d molecules to %s", len(self), filepath)

    @classmethod
    def load_from_file(cls, filepath: str) -> "MoleculeLibrary":
        """Carga una biblioteca; un archivo inexistente da una biblioteca vacía."""
        if not os.path.exists(filepath):
            return cls()
        with open(filepath, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise LibraryFormatError(f"Invalid JSON in {filepath}") from exc
        return cls.load_from_dict(data)


__all__ = [
    "APPLICATION",
    "MoleculeLibrary",
    "molecule_from_dict",
    "molecule_to_dict",
]

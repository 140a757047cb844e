from __future__ import annotations

from typing import Dict, List, Optional

from core.layout import LayoutParams, auto_layout
from core.model import Molecule, new_molecule
from core.sanitize import sanitize_graph

try:
    from rdkit import Chem
except Exception:  # pragma: no cover - optional dependency at runtime
    Chem = None


def _require_rdkit():
    if Chem is None:
        raise RuntimeError("RDKit no disponible")


def rdkit_available() -> bool:
    return Chem is not None


def molecule_to_rdkit_with_map(molecule: Molecule):
    _require_rdkit()
    rw = Chem.RWMol()
    id_map: Dict[str, int] = {}

    for atom in molecule.atoms:
        rd_idx = rw.AddAtom(Chem.Atom(atom.element.value))
        id_map[atom.id] = rd_idx

    for bond in molecule.bonds:
        if bond.source_atom_id not in id_map or bond.target_atom_id not in id_map:
            continue
        if bond.order == 2:
            bond_type = Chem.BondType.DOUBLE
        elif bond.order == 3:
            bond_type = Chem.BondType.TRIPLE
        else:
            bond_type = Chem.BondType.SINGLE
        begin = id_map[bond.source_atom_id]
        end = id_map[bond.target_atom_id]
        if rw.GetBondBetweenAtoms(begin, end) is None:
            rw.AddBond(begin, end, bond_type)

    mol = rw.GetMol()
    conf = Chem.Conformer(mol.GetNumAtoms())
    for atom in molecule.atoms:
        conf.SetAtomPosition(id_map[atom.id], (atom.x, -atom.y, 0.0))
    mol.AddConformer(conf, assignId=True)
    return mol, id_map


def molecule_to_rdkit(molecule: Molecule):
    mol, _ = molecule_to_rdkit_with_map(molecule)
    return mol


def molecule_to_smiles(molecule: Molecule) -> str:
    mol = molecule_to_rdkit(molecule)
    # Los hidrógenos se dibujan explícitos; se dejan implícitos en el SMILES.
    mol.UpdatePropertyCache(strict=False)
    mol = Chem.RemoveHs(mol, sanitize=False)
    return Chem.MolToSmiles(mol, canonical=True)


def molecule_to_molfile(molecule: Molecule) -> str:
    mol = molecule_to_rdkit(molecule)
    return Chem.MolToMolBlock(mol)


def smiles_to_molecule(
    smiles: str,
    width: float = 600.0,
    height: float = 400.0,
    name: Optional[str] = None,
    params: Optional[LayoutParams] = None,
) -> Molecule:
    """Importa un SMILES con hidrógenos explícitos y lo dispone en el lienzo.

    Los átomos cuyo elemento no está en la paleta se descartan junto con sus
    enlaces, igual que en los productos predichos.
    """
    _require_rdkit()
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError("SMILES inválido")
    Chem.Kekulize(mol, clearAromaticFlags=True)
    mol = Chem.AddHs(mol)

    atoms: List[dict] = [
        {"id": str(atom.GetIdx()), "element": atom.GetSymbol()} for atom in mol.GetAtoms()
    ]
    bonds: List[dict] = []
    for bond in mol.GetBonds():
        order = 1
        if bond.GetBondType() == Chem.BondType.DOUBLE:
            order = 2
        elif bond.GetBondType() == Chem.BondType.TRIPLE:
            order = 3
        bonds.append(
            {
                "source": str(bond.GetBeginAtomIdx()),
                "target": str(bond.GetEndAtomIdx()),
                "order": order,
            }
        )

    empty = new_molecule(name or smiles)
    molecule = sanitize_graph(atoms, bonds, molecule_id=empty.id, name=empty.name)
    return auto_layout(molecule, width, height, params=params)

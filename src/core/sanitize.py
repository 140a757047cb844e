"""Saneamiento de grafos moleculares recibidos de fuentes externas.

Las estructuras que devuelve el servicio de predicción llegan como JSON
libre: IDs repetidos o vacíos, símbolos desconocidos, enlaces que apuntan a
átomos inexistentes u órdenes fuera de rango. Aquí se reconstruye una
`Molecule` que cumple todos los invariantes del modelo conservando solo el
patrón de conectividad.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from core.model import (
    ATOM_ID_PREFIX,
    BOND_ID_PREFIX,
    BOND_ORDERS,
    Atom,
    Bond,
    ElementType,
    Molecule,
)

_SYMBOLS_LOWER = {element.value.lower(): element for element in ElementType}


def parse_element(value: Any) -> Optional[ElementType]:
    """Interpreta un símbolo químico; devuelve `None` si no es conocido.

    Primero se busca coincidencia exacta y después sin distinguir
    mayúsculas (`"cl"` → `Cl`).
    """
    if isinstance(value, ElementType):
        return value
    if not isinstance(value, str):
        return None
    symbol = value.strip()
    try:
        return ElementType(symbol)
    except ValueError:
        return _SYMBOLS_LOWER.get(symbol.lower())


def parse_order(value: Any) -> int:
    """Convierte el orden de enlace; lo ausente o inválido vale 1."""
    try:
        order = int(value)
    except (TypeError, ValueError):
        return 1
    return order if order in BOND_ORDERS else 1


def _source_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def sanitize_graph(
    atoms: List[Mapping[str, Any]],
    bonds: List[Mapping[str, Any]],
    molecule_id: str,
    name: str,
) -> Molecule:
    """Construye una molécula válida a partir de listas crudas.

    Args:
        atoms: Registros `{id, element}`; se descartan los que no tienen ID
            o cuyo elemento no es conocido. Ante IDs repetidos gana el primero.
        bonds: Registros `{source, target, order}`; se descartan los que
            apuntan fuera del conjunto de átomos retenidos, los bucles y los
            pares repetidos.
        molecule_id: ID de la molécula resultante.
        name: Nombre de la molécula resultante.

    Returns:
        Molécula con IDs internos nuevos (`a1..`, `b1..`) y coordenadas en
        cero; la disposición se calcula después.
    """
    id_map: Dict[str, str] = {}
    clean_atoms: List[Atom] = []
    for raw in atoms:
        if not isinstance(raw, Mapping):
            continue
        source = _source_id(raw.get("id"))
        element = parse_element(raw.get("element"))
        if not source or element is None or source in id_map:
            continue
        new_id = f"{ATOM_ID_PREFIX}{len(clean_atoms) + 1}"
        id_map[source] = new_id
        clean_atoms.append(Atom(id=new_id, element=element))

    seen_pairs: set[frozenset[str]] = set()
    clean_bonds: List[Bond] = []
    for raw in bonds:
        if not isinstance(raw, Mapping):
            continue
        source = id_map.get(_source_id(raw.get("source")))
        target = id_map.get(_source_id(raw.get("target")))
        if source is None or target is None or source == target:
            continue
        pair = frozenset((source, target))
        if pair in seen_pairs:
            continue
        seen_pairs.add(pair)
        clean_bonds.append(
            Bond(
                id=f"{BOND_ID_PREFIX}{len(clean_bonds) + 1}",
                source_atom_id=source,
                target_atom_id=target,
                order=parse_order(raw.get("order")),
            )
        )

    return Molecule(
        id=molecule_id,
        name=name,
        atoms=tuple(clean_atoms),
        bonds=tuple(clean_bonds),
    )


def sanitize_product(
    raw: Mapping[str, Any],
    molecule_id: str,
    name_default: str = "Product",
) -> Molecule:
    """Sanea un `ProductGraph` (`{name, atoms, bonds}`) del colaborador."""
    if not isinstance(raw, Mapping):
        raw = {}
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        name = name_default
    atoms = raw.get("atoms")
    bonds = raw.get("bonds")
    return sanitize_graph(
        atoms if isinstance(atoms, list) else [],
        bonds if isinstance(bonds, list) else [],
        molecule_id=molecule_id,
        name=name.strip(),
    )


def repair_molecule(molecule: Molecule) -> Molecule:
    """Elimina de una molécula ya tipada los enlaces que rompen invariantes.

    Conserva IDs y posiciones; solo se usa al cargar archivos de biblioteca
    que pudieron editarse a mano.
    """
    atom_ids: set[str] = set()
    atoms: List[Atom] = []
    for atom in molecule.atoms:
        if atom.id in atom_ids or not isinstance(atom.element, ElementType):
            continue
        atom_ids.add(atom.id)
        atoms.append(atom)

    bond_ids: set[str] = set()
    pairs: set[frozenset[str]] = set()
    bonds: List[Bond] = []
    for bond in molecule.bonds:
        pair = frozenset((bond.source_atom_id, bond.target_atom_id))
        if (
            bond.id in bond_ids
            or bond.source_atom_id not in atom_ids
            or bond.target_atom_id not in atom_ids
            or len(pair) != 2
            or pair in pairs
        ):
            continue
        bond_ids.add(bond.id)
        pairs.add(pair)
        if bond.order not in BOND_ORDERS:
            bond = Bond(bond.id, bond.source_atom_id, bond.target_atom_id, 1)
        bonds.append(bond)

    return Molecule(
        id=molecule.id,
        name=molecule.name,
        atoms=tuple(atoms),
        bonds=tuple(bonds),
        formula=molecule.formula,
    )

"""Masa molecular de las moléculas del constructor.

La tabla cubre exactamente los elementos de la paleta, así que una molécula
válida siempre tiene masa; solo los conteos escritos a mano pueden fallar.
"""

from __future__ import annotations

from typing import Dict, Mapping

from core.model import ElementType, Molecule

# Pesos atómicos estándar (u), IUPAC abreviados.
ATOMIC_WEIGHTS: Dict[ElementType, float] = {
    ElementType.H: 1.008,
    ElementType.C: 12.011,
    ElementType.N: 14.007,
    ElementType.O: 15.999,
    ElementType.F: 18.998,
    ElementType.Na: 22.990,
    ElementType.Mg: 24.305,
    ElementType.P: 30.974,
    ElementType.S: 32.06,
    ElementType.Cl: 35.45,
    ElementType.K: 39.098,
    ElementType.Ca: 40.078,
    ElementType.Fe: 55.845,
    ElementType.Br: 79.904,
    ElementType.I: 126.904,
}


def formula_weight(counts: Mapping[str, int]) -> float:
    """Suma los pesos de un conteo `símbolo -> cantidad`.

    Raises:
        ValueError: Si algún símbolo no es un elemento de la paleta.
    """
    total = 0.0
    for symbol, count in counts.items():
        try:
            element = ElementType(symbol)
        except ValueError:
            raise ValueError(f"Atomic weight not available for {symbol}") from None
        total += ATOMIC_WEIGHTS[element] * count
    return total


def molecular_weight(molecule: Molecule) -> float:
    """Masa molecular en g/mol; 0.0 para una molécula vacía."""
    return sum(ATOMIC_WEIGHTS[atom.element] for atom in molecule.atoms)

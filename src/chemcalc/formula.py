"""Cálculo y formateo de fórmulas moleculares.

Este módulo cuenta los elementos de una molécula y formatea la fórmula
siguiendo el orden de Hill. Los hidrógenos se dibujan siempre como átomos
explícitos, así que no se infieren hidrógenos implícitos.
"""

from __future__ import annotations

from typing import Dict

from core.model import Molecule


def element_counts(molecule: Molecule) -> Dict[str, int]:
    """Calcula la fórmula molecular como diccionario de elemento -> conteo.

    Args:
        molecule: Molécula a contar.

    Returns:
        Diccionario con símbolos atómicos y sus cantidades.
    """
    counts: Dict[str, int] = {}
    for atom in molecule.atoms:
        symbol = atom.element.value
        counts[symbol] = counts.get(symbol, 0) + 1
    return counts


def format_formula(formula_dict: Dict[str, int]) -> str:
    """Formatea una fórmula usando el orden de Hill (C, H, luego alfabético).

    Sin carbono el orden es alfabético puro, también para el hidrógeno.

    Args:
        formula_dict: Diccionario con símbolos de elementos y cantidades.

    Returns:
        Cadena con la fórmula formateada (p. ej., "C2H6O").
    """
    if not formula_dict:
        return ""
    order = []
    if "C" in formula_dict:
        order.append("C")
        if "H" in formula_dict:
            order.append("H")
    for element in sorted(e for e in formula_dict.keys() if e not in order):
        order.append(element)

    parts = []
    for element in order:
        count = formula_dict.get(element, 0)
        if count <= 0:
            continue
        parts.append(element if count == 1 else f"{element}{count}")
    return "".join(parts)


def molecular_formula(molecule: Molecule) -> str:
    """Atajo: fórmula formateada de una molécula (cadena vacía si no hay átomos)."""
    return format_formula(element_counts(molecule))

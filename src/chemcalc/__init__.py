"""Fórmula y masa de las moléculas del constructor."""

from .formula import element_counts, format_formula, molecular_formula
from .mass import ATOMIC_WEIGHTS, formula_weight, molecular_weight

__all__ = [
    "ATOMIC_WEIGHTS",
    "element_counts",
    "format_formula",
    "formula_weight",
    "molecular_formula",
    "molecular_weight",
]

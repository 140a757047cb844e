"""Cliente del servicio generativo para predecir reacciones e identificar moléculas.

El servicio se trata como un colaborador falible: cualquier fallo de red,
de clave o de formato en la predicción se convierte en un único
`PredictionError`, sin productos parciales. La identificación es de mejor
esfuerzo y recurre a la fórmula calculada localmente.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

from chemcalc.formula import molecular_formula
from chemio.errors import CollaboratorError, IdentificationError, PredictionError
from core.config import AppConfig
from core.layout import auto_layout
from core.model import Molecule
from core.sanitize import sanitize_product

try:
    import google.generativeai as genai
except ImportError:  # pragma: no cover - optional dependency at runtime
    genai = None

logger = logging.getLogger(__name__)

# (instrucción de sistema, prompt, tipo MIME de respuesta) -> texto
GenerateFn = Callable[[str, str, str], str]

PREDICTION_FAILED_MESSAGE = "Failed to simulate reaction. Please try again."
DEFAULT_EQUATION = "Reaction Complete"
DEFAULT_EXPLANATION = "The reactants formed new products."

IDENTIFY_INSTRUCTION = """
You are an expert chemist.
User provides a list of atoms and bonds representing a molecule.
Your task is to identify the common name of this molecule.
If it has a well-known common name (e.g., Water, Ethanol, Aspirin, Caffeine), use that.
Otherwise, use the IUPAC name.
If it's an invalid or disconnected structure, return "Unknown Structure".
Return ONLY the name as a plain string, no markdown, no explanation.
"""

PREDICT_INSTRUCTION = """
You are an expert computational chemist.
Users will provide a list of reactant molecules.
Your task is to:
1. Predict the most likely chemical reaction.
2. Balance the equation.
3. Generate the structure of the product molecules (atoms and bonds).

IMPORTANT: Return the atomic structure (graph) for the products so they can be visualized.
For the structure of products:
- Use standard element symbols (H, C, O, N, Cl, Na, S, F, P, Mg, K, Ca, Fe, Br, I).
- Create a logical connectivity (bonds).
- 'id' for atoms should be unique integers as strings (e.g., "1", "2").
- 'order' for bonds is 1 (single), 2 (double), or 3 (triple).
- Ensure every bond connects two existing atom IDs.
"""

REACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "equation": {"type": "string", "description": "The balanced chemical equation string"},
        "explanation": {"type": "string", "description": "A brief 1-sentence explanation of the reaction"},
        "products": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "atoms": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "element": {"type": "string"},
                            },
                        },
                    },
                    "bonds": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "source": {"type": "string"},
                                "target": {"type": "string"},
                                "order": {"type": "integer"},
                            },
                        },
                    },
                },
            },
        },
    },
}

_FENCE_START = re.compile(r"^```(json)?\s*")
_FENCE_END = re.compile(r"\s*```$")


@dataclass(frozen=True)
class ReactionResult:
    """Reacción predicha con productos ya saneados y dispuestos."""
    equation: str
    explanation: str
    products: Tuple[Molecule, ...]


def strip_code_fence(text: str) -> str:
    """Quita el bloque Markdown (```json ... ```) que a veces envuelve el JSON."""
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_END.sub("", _FENCE_START.sub("", text))
    return text


def describe_reactants(reactants: Sequence[Molecule]) -> str:
    """Describe los reactivos como `Nombre (Fórmula) + ...`."""
    return " + ".join(
        f"{reactant.name or 'Unknown Molecule'} ({molecular_formula(reactant)})"
        for reactant in reactants
    )


def describe_structure(molecule: Molecule) -> str:
    atoms = ", ".join(f"{atom.element.value} (id:{atom.id})" for atom in molecule.atoms)
    bonds = ", ".join(
        f"{bond.source_atom_id}-{bond.target_atom_id} (order:{bond.order})"
        for bond in molecule.bonds
    )
    return f"Atoms: {atoms}\nBonds: {bonds}\nFormula Hint: {molecular_formula(molecule)}"


class ReactionPredictor:
    """Fachada sobre el modelo generativo.

    Args:
        config: Configuración con clave de API, modelo y tamaños de lienzo.
        generate: Función alternativa de generación; si se indica, no se usa
            la red (útil en pruebas).
    """

    def __init__(self, config: Optional[AppConfig] = None, generate: Optional[GenerateFn] = None) -> None:
        self.config = config or AppConfig.from_env()
        self._generate_fn = generate

    def _generate(self, system_instruction: str, prompt: str, mime_type: str) -> str:
        if self._generate_fn is not None:
            return self._generate_fn(system_instruction, prompt, mime_type)
        return self._gemini_generate(system_instruction, prompt, mime_type)

    def _gemini_generate(self, system_instruction: str, prompt: str, mime_type: str) -> str:
        if genai is None:
            raise CollaboratorError("The 'google-generativeai' library is not installed.")
        if not self.config.api_key:
            raise CollaboratorError("API Key not found")
        genai.configure(api_key=self.config.api_key)
        model = genai.GenerativeModel(
            self.config.model_name,
            system_instruction=system_instruction,
        )
        generation_config: dict[str, Any] = {"response_mime_type": mime_type}
        if mime_type == "application/json":
            generation_config["response_schema"] = REACTION_SCHEMA
        response = model.generate_content(prompt, generation_config=generation_config)
        return response.text

    def identify_name(self, molecule: Molecule) -> str:
        """Identifica el nombre común o IUPAC de una molécula.

        Returns:
            El nombre propuesto, o la fórmula si la respuesta está vacía,
            supera `max_name_length` caracteres o la llamada falla.
        """
        formula = molecular_formula(molecule)
        try:
            text = self._generate(IDENTIFY_INSTRUCTION, describe_structure(molecule), "text/plain")
            name = (text or "").strip()
            if not name or len(name) > self.config.max_name_length:
                raise IdentificationError(f"Implausible name: {name[:60]!r}")
        except Exception as exc:
            logger.warning("Identification failed, using formula %s: %s", formula, exc)
            return formula
        return name

    def predict_products(self, reactants: Sequence[Molecule]) -> ReactionResult:
        """Predice la reacción y devuelve productos saneados y dispuestos.

        Raises:
            PredictionError: Ante cualquier fallo; nunca se devuelve un
                resultado parcial.
        """
        prompt = f"Reactants: {describe_reactants(reactants)}"
        try:
            text = self._generate(PREDICT_INSTRUCTION, prompt, "application/json")
            if not text:
                raise CollaboratorError("No response from AI")
            return self.parse_reaction(text)
        except Exception as exc:
            logger.exception("Reaction prediction failed")
            raise PredictionError(PREDICTION_FAILED_MESSAGE) from exc

    def parse_reaction(self, text: str, stamp: Optional[int] = None) -> ReactionResult:
        """Convierte la respuesta JSON en un `ReactionResult`.

        Cada producto pasa por el saneamiento y por la disposición por lotes
        antes de tratarse como una molécula normal.

        Raises:
            ValueError: Si el texto no es JSON o no tiene la forma esperada.
        """
        data = json.loads(strip_code_fence(text))
        if not isinstance(data, dict):
            raise ValueError("Reaction payload must be a JSON object")
        raw_products = data.get("products") or []
        if not isinstance(raw_products, list):
            raise ValueError("'products' must be a list")

        stamp = int(time.time() * 1000) if stamp is None else stamp
        products = []
        for index, raw in enumerate(raw_products):
            molecule = sanitize_product(raw, molecule_id=f"product-{index}-{stamp}")
            raw_bonds = raw.get("bonds") if isinstance(raw, dict) else None
            if isinstance(raw_bonds, list) and len(raw_bonds) > len(molecule.bonds):
                logger.debug(
                    "Dropped %d invalid bonds from product %d",
                    len(raw_bonds) - len(molecule.bonds),
                    index,
                )
            products.append(
                auto_layout(
                    molecule,
                    self.config.product_width,
                    self.config.product_height,
                    params=self.config.layout,
                )
            )

        return ReactionResult(
            equation=str(data.get("equation") or DEFAULT_EQUATION),
            explanation=str(data.get("explanation") or DEFAULT_EXPLANATION),
            products=tuple(products),
        )

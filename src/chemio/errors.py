"""Excepciones de los colaboradores externos y de la persistencia."""


class CollaboratorError(Exception):
    """Fallo de un servicio externo (red, clave ausente o respuesta mal formada)."""


class PredictionError(CollaboratorError):
    """Se lanza cuando no se pudo obtener una predicción de reacción completa."""


class IdentificationError(CollaboratorError):
    """Se lanza cuando el servicio no devolvió un nombre utilizable."""


class LibraryFormatError(ValueError):
    """Se lanza al cargar un archivo que no es una biblioteca de AtomLab."""

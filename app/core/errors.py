class LinguaError(Exception):
    """Base de todos los errores del núcleo de Lingua."""


class InvalidNameError(LinguaError):
    """Nombre de jugador vacío (tras strip)."""


class OutOfRangeError(LinguaError):
    """Subnivel fuera de [1, total_sublevels]."""


class NoActiveQuestionError(LinguaError):
    """submit_answer sin ninguna pregunta activa."""


class RunStateError(LinguaError):
    """Operación inválida para el estado actual de la partida (p.ej. estado terminal)."""


class ValidationTransportError(LinguaError):
    """El diccionario externo no respondió. Nunca sale del controlador."""


class ContentError(LinguaError):
    """Contenido estático (game-data) inválido o inexistente."""

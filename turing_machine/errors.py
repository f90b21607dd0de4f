from __future__ import annotations

from typing import Optional


class TuringMachineError(ValueError):
    """Error base del simulador."""


class MalformedDescription(TuringMachineError):
    """La descripción de la máquina no es válida."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.message = message
        self.line_number = line_number
        if line_number is not None:
            message = f"línea {line_number}: {message}"
        super().__init__(message)


class DuplicateTransitionRule(MalformedDescription):
    """Dos reglas comparten el mismo par (estado, símbolo)."""

    def __init__(self, state: int, symbol: str, line_number: Optional[int] = None) -> None:
        self.state = state
        self.symbol = symbol
        super().__init__(
            f"transición duplicada para el estado {state} con el símbolo {symbol!r}",
            line_number,
        )


class InvalidTapeSymbol(TuringMachineError):
    """Un símbolo de la cinta inicial no pertenece al alfabeto."""

    def __init__(self, symbol: str, position: int) -> None:
        self.symbol = symbol
        self.position = position
        super().__init__(f"símbolo de cinta inválido {symbol!r} en la posición {position}")


class TapeOverflow(TuringMachineError):
    """La cabeza saldría del rango de índices representable."""

    def __init__(self, head: int, limit: int) -> None:
        self.head = head
        self.limit = limit
        super().__init__(f"fin de la cinta: la cabeza en {head} excede el límite de {limit} celdas")

from __future__ import annotations

import logging
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, FrozenSet, Iterable, List, Optional, Tuple

from .config_loader import Direction, MachineConfig
from .errors import InvalidTapeSymbol, TapeOverflow

logger = logging.getLogger(__name__)


@dataclass
class InstantaneousDescription:
    """Representa una descripción instantánea (ID) de la MT."""

    step: int
    state: int
    head_position: int
    tape: Tuple[str, ...]
    blank: str

    def format(self) -> str:
        cells = self.tape or (self.blank,)
        parts = []
        for index, symbol in enumerate(cells):
            if index == self.head_position:
                parts.append(f"({self.state})")
            parts.append(symbol)
        return "".join(parts)


Observer = Callable[[InstantaneousDescription], None]


@dataclass
class MachineResult:
    """Resultado final de la simulación."""

    accepted: bool
    halted: bool
    reason: str
    steps: int
    state: int
    tape: str
    ids: List[InstantaneousDescription] = field(default_factory=list)


class Tape:
    """Cinta infinita hacia ambos lados.

    Solo se materializa una ventana finita; todo lo que queda fuera de ella
    contiene el símbolo en blanco. La ventana crece de uno en uno por
    cualquiera de los extremos y nunca se encoge.
    """

    def __init__(self, blank_symbol: str, symbols: Iterable[str] = ()) -> None:
        self.blank_symbol = blank_symbol
        self.cells: Deque[str] = deque()
        self.extend(symbols)

    def extend(self, symbols: Iterable[str], valid_symbols: Optional[FrozenSet[str]] = None) -> None:
        """Añade símbolos al final; si se indica ``valid_symbols`` se validan antes."""

        symbols = list(symbols)
        if valid_symbols is not None:
            for position, symbol in enumerate(symbols):
                if symbol not in valid_symbols:
                    raise InvalidTapeSymbol(symbol, len(self.cells) + position)
        self.cells.extend(symbols)

    def read(self, position: int) -> str:
        if not self.cells:
            return self.blank_symbol
        return self.cells[position]

    def write(self, position: int, symbol: str) -> None:
        if not self.cells:
            self.cells.append(symbol)
            return
        self.cells[position] = symbol

    def grow_left(self) -> None:
        self.cells.appendleft(self.blank_symbol)

    def grow_right(self) -> None:
        self.cells.append(self.blank_symbol)

    def symbols(self) -> Tuple[str, ...]:
        return tuple(self.cells)

    def to_text(self) -> str:
        return "".join(self.cells)

    def __len__(self) -> int:
        return len(self.cells)


class TuringMachine:
    """Simulador de Máquinas de Turing deterministas de una cinta.

    La configuración (alfabeto, tabla de transiciones...) es inmutable y puede
    compartirse; la cinta, la cabeza y el estado pertenecen a esta instancia y
    se reconstruyen con :meth:`reset` en cada ejecución.
    """

    def __init__(self, config: MachineConfig, *, max_tape_length: int = sys.maxsize) -> None:
        self.config = config
        self.max_tape_length = max_tape_length
        self.tape = Tape(config.blank)
        self.head = 0
        self.state = config.initial_state
        self.steps = 0

    def reset(self, tape_text: str = "") -> None:
        """Prepara una ejecución nueva con ``tape_text`` como contenido de la cinta.

        Ante un :class:`InvalidTapeSymbol` la máquina queda con la cinta vacía
        y el estado inicial, lista para la siguiente entrada.
        """

        self.tape = Tape(self.config.blank)
        self.head = 0
        self.state = self.config.initial_state
        self.steps = 0
        tape = Tape(self.config.blank)
        tape.extend(tape_text, self.config.tape_symbols)
        if len(tape) > self.max_tape_length:
            raise TapeOverflow(len(tape) - 1, self.max_tape_length)
        self.tape = tape

    def describe(self) -> InstantaneousDescription:
        return InstantaneousDescription(
            step=self.steps,
            state=self.state,
            head_position=self.head,
            tape=self.tape.symbols(),
            blank=self.config.blank,
        )

    def is_accepting(self) -> bool:
        return self.config.is_accepting(self.state)

    def step(self) -> bool:
        """Aplica una transición. Devuelve ``False`` si no hay regla y la máquina se detiene."""

        action = self.config.transitions.lookup(self.state, self.tape.read(self.head))
        if action is None:
            return False

        # Nada se escribe hasta comprobar el límite de la cinta.
        last_index = max(len(self.tape) - 1, 0)
        if action.direction is Direction.RIGHT:
            grow = self.head >= last_index
        else:
            grow = self.head == 0
        if grow and max(len(self.tape), 1) >= self.max_tape_length:
            raise TapeOverflow(self.head, self.max_tape_length)

        self.tape.write(self.head, action.write_symbol)
        if action.direction is Direction.RIGHT:
            if grow:
                self.tape.grow_right()
            self.head += 1
        elif grow:
            self.tape.grow_left()
        else:
            self.head -= 1
        self.state = action.next_state
        self.steps += 1
        return True

    def run(
        self,
        observer: Optional[Observer] = None,
        *,
        max_steps: Optional[int] = None,
    ) -> MachineResult:
        """Ejecuta la máquina hasta que ninguna regla sea aplicable.

        ``observer`` recibe la descripción instantánea antes de cada paso y
        una última vez con la configuración de parada. ``max_steps`` es un
        límite externo: al alcanzarlo se devuelve un resultado no detenido.
        """

        while True:
            if observer is not None:
                observer(self.describe())
            if max_steps is not None and self.steps >= max_steps:
                logger.debug("Límite de %d pasos alcanzado en el estado %d", max_steps, self.state)
                return self._result(halted=False, reason="Se alcanzó el límite máximo de pasos")
            if not self.step():
                break

        accepted = self.is_accepting()
        reason = "Estado de aceptación alcanzado" if accepted else "No existe transición definida"
        logger.debug("Parada en el estado %d tras %d pasos", self.state, self.steps)
        return self._result(halted=True, reason=reason, accepted=accepted)

    def execute(
        self,
        tape_text: str,
        observer: Optional[Observer] = None,
        *,
        max_steps: Optional[int] = None,
        capture_ids: bool = False,
    ) -> MachineResult:
        """Reinicia la máquina con ``tape_text`` y la ejecuta."""

        self.reset(tape_text)
        ids: List[InstantaneousDescription] = []

        def record(description: InstantaneousDescription) -> None:
            if capture_ids:
                ids.append(description)
            if observer is not None:
                observer(description)

        traced = capture_ids or observer is not None
        result = self.run(record if traced else None, max_steps=max_steps)
        result.ids = ids
        return result

    def _result(self, *, halted: bool, reason: str, accepted: bool = False) -> MachineResult:
        return MachineResult(
            accepted=accepted,
            halted=halted,
            reason=reason,
            steps=self.steps,
            state=self.state,
            tape=self.tape.to_text(),
        )

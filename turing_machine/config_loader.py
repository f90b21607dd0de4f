from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

import yaml

from .errors import DuplicateTransitionRule, MalformedDescription

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class Direction(Enum):
    LEFT = "L"
    RIGHT = "R"


@dataclass(frozen=True)
class Action:
    """Lado derecho de una transición: qué hacer tras leer un símbolo."""

    next_state: int
    write_symbol: str
    direction: Direction


@dataclass(frozen=True)
class Transition:
    """Representa una transición de la MT tal como aparece en la descripción."""

    state: int
    read_symbol: str
    next_state: int
    write_symbol: str
    direction: Direction
    line_number: Optional[int] = None

    @property
    def key(self) -> Tuple[int, str]:
        return (self.state, self.read_symbol)

    @property
    def action(self) -> Action:
        return Action(self.next_state, self.write_symbol, self.direction)


class TransitionTable(Mapping):
    """Tabla determinista (estado, símbolo) -> acción, inmutable tras construirse.

    Puede compartirse entre tantas instancias de la máquina como se quiera,
    incluso desde hilos distintos, porque nadie la modifica.
    """

    def __init__(self, actions: Mapping[Tuple[int, str], Action]) -> None:
        self._actions = MappingProxyType(dict(actions))

    @classmethod
    def from_rules(
        cls,
        rules: Iterable[Transition],
        alphabet: Iterable[str],
        blank: str,
        *,
        overwrite: bool = False,
    ) -> "TransitionTable":
        """Valida las reglas y construye la tabla.

        Con ``overwrite=True`` una regla repetida reemplaza a la anterior en
        lugar de rechazar la descripción.
        """

        symbols = set(alphabet) | {blank}
        actions: Dict[Tuple[int, str], Action] = {}
        for rule in rules:
            if rule.state < 0 or rule.next_state < 0:
                raise MalformedDescription("los estados deben ser enteros no negativos", rule.line_number)
            if rule.read_symbol not in symbols:
                raise MalformedDescription(
                    f"símbolo leído {rule.read_symbol!r} no pertenece al alfabeto",
                    rule.line_number,
                )
            if rule.write_symbol not in symbols:
                raise MalformedDescription(
                    f"símbolo escrito {rule.write_symbol!r} no pertenece al alfabeto",
                    rule.line_number,
                )
            if not isinstance(rule.direction, Direction):
                raise MalformedDescription(f"movimiento inválido {rule.direction!r}", rule.line_number)
            if rule.key in actions:
                if not overwrite:
                    raise DuplicateTransitionRule(rule.state, rule.read_symbol, rule.line_number)
                logger.warning(
                    "La transición (%s, %r) se redefine; se conserva la última", rule.state, rule.read_symbol
                )
            actions[rule.key] = rule.action
        return cls(actions)

    def lookup(self, state: int, symbol: str) -> Optional[Action]:
        return self._actions.get((state, symbol))

    def __getitem__(self, key: Tuple[int, str]) -> Action:
        return self._actions[key]

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"TransitionTable({len(self)} reglas)"


@dataclass(frozen=True)
class MachineConfig:
    """Estructura de datos inmutable con la especificación completa."""

    alphabet: FrozenSet[str]
    blank: str
    accepting_states: FrozenSet[int]
    initial_state: int
    transitions: TransitionTable
    simulation_strings: Tuple[str, ...] = ()

    @property
    def tape_symbols(self) -> FrozenSet[str]:
        return self.alphabet | {self.blank}

    def is_accepting(self, state: int) -> bool:
        return state in self.accepting_states


def _parse_state(token: str, what: str, line_number: Optional[int]) -> int:
    # YAML entrega bool y float ya convertidos; solo se aceptan enteros o texto.
    if isinstance(token, bool) or not isinstance(token, (str, int)):
        raise MalformedDescription(f"{what} debe ser un entero no negativo: {token!r}", line_number)
    try:
        value = int(token)
    except (TypeError, ValueError):
        raise MalformedDescription(f"{what} inválido: {token!r}", line_number) from None
    if value < 0:
        raise MalformedDescription(f"{what} debe ser no negativo: {token!r}", line_number)
    return value


def _parse_symbol(token: str, what: str, line_number: Optional[int]) -> str:
    if not isinstance(token, str) or len(token) != 1:
        raise MalformedDescription(f"{what} debe ser un único carácter: {token!r}", line_number)
    return token


def _parse_direction(token: str, line_number: Optional[int]) -> Direction:
    try:
        return Direction(token)
    except ValueError:
        raise MalformedDescription(
            f"movimiento inválido {token!r}; valores permitidos: R, L", line_number
        ) from None


def _parse_rule(fields: List, line_number: Optional[int]) -> Transition:
    if len(fields) != 5:
        raise MalformedDescription(
            "cada transición necesita 5 campos: <estado> <lee> <siguiente> <escribe> <movimiento>",
            line_number,
        )
    state, read_symbol, next_state, write_symbol, direction = fields
    return Transition(
        state=_parse_state(state, "estado", line_number),
        read_symbol=_parse_symbol(str(read_symbol), "símbolo leído", line_number),
        next_state=_parse_state(next_state, "estado siguiente", line_number),
        write_symbol=_parse_symbol(str(write_symbol), "símbolo escrito", line_number),
        direction=_parse_direction(str(direction), line_number),
        line_number=line_number,
    )


def _build_config(
    alphabet: Iterable[str],
    blank: str,
    accepting: Iterable[int],
    initial_state: int,
    rules: Iterable[Transition],
    *,
    overwrite: bool,
    simulation_strings: Optional[List[str]] = None,
) -> MachineConfig:
    alphabet = frozenset(alphabet)
    table = TransitionTable.from_rules(rules, alphabet, blank, overwrite=overwrite)
    config = MachineConfig(
        alphabet=alphabet,
        blank=blank,
        accepting_states=frozenset(accepting),
        initial_state=initial_state,
        transitions=table,
        simulation_strings=tuple(simulation_strings or ()),
    )
    logger.debug(
        "Máquina cargada: %d símbolos, blanco %r, %d reglas, estado inicial %d",
        len(config.alphabet),
        config.blank,
        len(table),
        config.initial_state,
    )
    return config


def parse_description(text: str, *, overwrite: bool = False) -> MachineConfig:
    """Interpreta la descripción en formato de líneas.

    Las cuatro primeras líneas son el alfabeto, el blanco, los estados de
    aceptación y el estado inicial; el resto son transiciones. En la sección
    de transiciones se ignoran las líneas vacías y las que empiezan por ``#``.
    """

    lines = text.splitlines()

    def header(index: int, what: str) -> List[str]:
        if index >= len(lines):
            raise MalformedDescription(f"falta la línea de {what}", index + 1)
        return lines[index].split()

    alphabet = [_parse_symbol(token, "símbolo del alfabeto", 1) for token in header(0, "alfabeto")]

    blank_tokens = header(1, "símbolo en blanco")
    if len(blank_tokens) != 1:
        raise MalformedDescription("debe especificarse exactamente un símbolo en blanco", 2)
    blank = _parse_symbol(blank_tokens[0], "símbolo en blanco", 2)

    accepting = [_parse_state(token, "estado de aceptación", 3) for token in header(2, "estados de aceptación")]

    initial_tokens = header(3, "estado inicial")
    if len(initial_tokens) != 1:
        raise MalformedDescription("debe especificarse exactamente un estado inicial", 4)
    initial_state = _parse_state(initial_tokens[0], "estado inicial", 4)

    rules = []
    for line_number, raw in enumerate(lines[4:], start=5):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        rules.append(_parse_rule(stripped.split(), line_number))

    return _build_config(alphabet, blank, accepting, initial_state, rules, overwrite=overwrite)


def load_description(path: str | Path, *, overwrite: bool = False) -> MachineConfig:
    """Carga una descripción en formato de líneas desde un archivo."""

    with Path(path).open("r", encoding="utf-8") as handle:
        return parse_description(handle.read(), overwrite=overwrite)


def _normalize_config(data: Dict) -> Dict:
    """Acepta configuraciones con o sin el nodo 'machine'."""

    if "machine" in data and isinstance(data["machine"], dict):
        return data["machine"]
    return data


def _yaml_rule(raw_rule, index: int) -> Transition:
    if isinstance(raw_rule, dict):
        keys = ("state", "read", "next", "write", "move")
        missing = [key for key in keys if key not in raw_rule]
        if missing:
            raise MalformedDescription(f"a la transición #{index} le faltan los campos {missing}")
        fields = [raw_rule[key] for key in keys]
    elif isinstance(raw_rule, (list, tuple)):
        fields = list(raw_rule)
    elif isinstance(raw_rule, str):
        fields = raw_rule.split()
    else:
        raise MalformedDescription(f"transición #{index} con formato no reconocido: {raw_rule!r}")
    try:
        return _parse_rule(fields, None)
    except MalformedDescription as exc:
        raise MalformedDescription(f"transición #{index}: {exc.message}") from None


def parse_yaml_description(text: str, *, overwrite: bool = False) -> MachineConfig:
    """Interpreta una descripción YAML equivalente al formato de líneas."""

    try:
        raw_data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MalformedDescription(f"YAML inválido: {exc}") from exc

    if not isinstance(raw_data, dict):
        raise MalformedDescription("El archivo YAML debe describir un objeto mapeo.")

    config = _normalize_config(raw_data)

    def require(key: str):
        if key not in config or config[key] is None:
            raise MalformedDescription(f"El campo '{key}' es obligatorio.")
        return config[key]

    raw_alphabet = require("alphabet")
    if isinstance(raw_alphabet, str):
        raw_alphabet = raw_alphabet.split()
    alphabet = [_parse_symbol(str(symbol), "símbolo del alfabeto", None) for symbol in raw_alphabet]
    blank = _parse_symbol(str(require("blank")), "símbolo en blanco", None)

    raw_accepting = config.get("accepting") or []
    if not isinstance(raw_accepting, list):
        raw_accepting = [raw_accepting]
    accepting = [_parse_state(state, "estado de aceptación", None) for state in raw_accepting]
    initial_state = _parse_state(require("initial"), "estado inicial", None)

    transition_block = config.get("delta") or []
    if not isinstance(transition_block, list):
        raise MalformedDescription("El bloque 'delta' debe ser una lista de transiciones.")
    rules = [_yaml_rule(raw_rule, index) for index, raw_rule in enumerate(transition_block)]

    simulation_strings = raw_data.get("simulation_strings") or config.get("simulation_strings") or []
    if isinstance(simulation_strings, str):
        simulation_strings = [simulation_strings]
    simulation_strings = [str(value) for value in simulation_strings]

    return _build_config(
        alphabet,
        blank,
        accepting,
        initial_state,
        rules,
        overwrite=overwrite,
        simulation_strings=simulation_strings,
    )


def load_yaml_description(path: str | Path, *, overwrite: bool = False) -> MachineConfig:
    """Carga y valida el archivo YAML que describe la MT."""

    with Path(path).open("r", encoding="utf-8") as handle:
        return parse_yaml_description(handle.read(), overwrite=overwrite)


def load_specification(path: str | Path, *, overwrite: bool = False) -> MachineConfig:
    """Elige el lector según la extensión del archivo."""

    if Path(path).suffix.lower() in YAML_SUFFIXES:
        return load_yaml_description(path, overwrite=overwrite)
    return load_description(path, overwrite=overwrite)

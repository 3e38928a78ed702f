"""
IR Values
=========

Values form a closed tagged union:

    Value = Argument | Constant | GlobalVariable | InstructionResult

Each concrete class carries its ``ValueKind`` tag. Consumers dispatch on
``value.kind`` and finish with ``unhandled_value_kind(value)`` so that a new
kind cannot silently fall through a check.

Values never own their users. ``users`` is a non-owning back-reference list
of the instructions that consume the value; the ``Instruction`` constructor
and ``Instruction.erase`` keep it up to date.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Optional, TYPE_CHECKING

import numpy as np

from irmemo.ir.types import DoubleType, FloatType, IntegerType, PointerType, Type, TypeKind

if TYPE_CHECKING:
    from irmemo.ir.program import Function, Instruction


class ValueKind(Enum):
    ARGUMENT = auto()
    CONSTANT = auto()
    GLOBAL_VARIABLE = auto()
    INSTRUCTION_RESULT = auto()


def unhandled_value_kind(value: 'Value'):
    """Terminal branch of an exhaustive dispatch over ``ValueKind``."""
    raise TypeError(f"Unhandled value kind {value.kind!r} for {value!r}")


@dataclass(eq=False)
class Value:
    """Common state of every IR value. Identity semantics: two values are
    equal only if they are the same object."""
    type: Type
    name: str = ''
    users: List['Instruction'] = field(default_factory=list, repr=False)

    kind: ValueKind = field(init=False, repr=False, default=None)

    def replace_all_uses_with(self, new: 'Value'):
        """Rewire every consumer of this value to ``new``."""
        if new is self:
            return
        for user in list(self.users):
            user.replace_operand(self, new)

    @property
    def has_uses(self) -> bool:
        return bool(self.users)

    def reference(self) -> str:
        """Operand spelling used by the printer."""
        return f'%{self.name}' if self.name else '%<anon>'


@dataclass(eq=False)
class Argument(Value):
    """Formal parameter of exactly one function."""
    parent: Optional['Function'] = field(default=None, repr=False)
    index: int = 0

    def __post_init__(self):
        self.kind = ValueKind.ARGUMENT


# ═══════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════

_FLOAT_DTYPES = {
    TypeKind.FLOAT: np.float32,
    TypeKind.DOUBLE: np.float64,
}


def _wrap_signed(value: int, bits: int) -> int:
    """Two's-complement wrap of ``value`` to ``bits``, read back signed."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


@dataclass(eq=False)
class Constant(Value):
    """Literal constant. ``payload`` is ``None`` for a null pointer."""
    payload: Any = None

    def __post_init__(self):
        self.kind = ValueKind.CONSTANT
        self.payload = self._normalize(self.payload)

    def _normalize(self, payload):
        kind = self.type.kind
        if kind is TypeKind.INTEGER:
            return _wrap_signed(int(payload), self.type.bits)
        if kind in _FLOAT_DTYPES:
            return _FLOAT_DTYPES[kind](payload)
        if kind is TypeKind.POINTER:
            if payload is not None:
                raise ValueError("only null pointer constants are supported")
            return None
        raise ValueError(f"no literal constants of type {self.type}")

    def key_text(self) -> str:
        """Decimal spelling of the literal, used in memoization keys."""
        if self.payload is None:
            return 'null'
        if self.type.kind is TypeKind.INTEGER:
            return str(self.payload)
        return np.format_float_positional(self.payload, unique=True, trim='-')

    def reference(self) -> str:
        return self.key_text()

    @classmethod
    def of_int(cls, type_: IntegerType, value: int) -> 'Constant':
        return cls(type=type_, payload=value)

    @classmethod
    def of_float(cls, type_: Type, value: float) -> 'Constant':
        if not isinstance(type_, (FloatType, DoubleType)):
            raise ValueError(f"{type_} is not a floating-point type")
        return cls(type=type_, payload=value)

    @classmethod
    def null(cls, type_: PointerType) -> 'Constant':
        return cls(type=type_, payload=None)


@dataclass(eq=False)
class GlobalVariable(Value):
    """Process-wide storage cell. As an operand it denotes the cell's
    address, so its ``type`` is a pointer to ``value_type``."""
    value_type: Optional[Type] = None
    initializer: Optional[Constant] = None

    def __post_init__(self):
        self.kind = ValueKind.GLOBAL_VARIABLE
        if self.value_type is None:
            if not isinstance(self.type, PointerType):
                raise ValueError("global variable needs a value type")
            self.value_type = self.type.pointee
        self.type = PointerType(self.value_type)

    @classmethod
    def of(cls, name: str, value_type: Type,
           initializer: Optional[Constant] = None) -> 'GlobalVariable':
        return cls(type=PointerType(value_type), name=name,
                   value_type=value_type, initializer=initializer)

    def reference(self) -> str:
        return f'@{self.name}'


@dataclass(eq=False)
class InstructionResult(Value):
    """Value produced by an instruction."""
    producer: Optional['Instruction'] = field(default=None, repr=False)

    def __post_init__(self):
        self.kind = ValueKind.INSTRUCTION_RESULT

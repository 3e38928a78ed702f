"""
IR Types
========

Value types of the intermediate representation.

The set of type kinds is closed: every consumer that needs to order or
classify types works from the ``TypeKind`` enumeration below rather than
from incidental Python class identity.

Canonical ordering:
    Memoized signatures are laid out by a total order over types. The
    order is explicit (``_KIND_RANK``) and refined by a per-kind detail
    key, so that it never depends on declaration order of the enum.

        i1 < i8 < i32 < i64 < float < double < T* < [N x T] < {...}
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple


class TypeKind(Enum):
    VOID = auto()
    INTEGER = auto()
    FLOAT = auto()
    DOUBLE = auto()
    POINTER = auto()
    ARRAY = auto()
    STRUCT = auto()


# Rank of each kind in the canonical parameter order.
_KIND_RANK = {
    TypeKind.INTEGER: 0,
    TypeKind.FLOAT: 1,
    TypeKind.DOUBLE: 2,
    TypeKind.POINTER: 3,
    TypeKind.ARRAY: 4,
    TypeKind.STRUCT: 5,
    TypeKind.VOID: 6,
}

# Kinds a memoizable global cell may hold.
SCALAR_KINDS = frozenset({TypeKind.INTEGER, TypeKind.FLOAT, TypeKind.DOUBLE})


@dataclass(frozen=True)
class Type:
    """Base class for IR types. Instances are immutable and compare by value."""

    @property
    def kind(self) -> TypeKind:
        raise NotImplementedError

    @property
    def is_scalar(self) -> bool:
        """Plain integer or floating-point scalar."""
        return self.kind in SCALAR_KINDS

    @property
    def is_pointer(self) -> bool:
        return self.kind is TypeKind.POINTER

    @property
    def is_void(self) -> bool:
        return self.kind is TypeKind.VOID

    def sort_key(self) -> Tuple:
        """Key realising the canonical total order over types."""
        return (_KIND_RANK[self.kind],) + self._detail_key()

    def _detail_key(self) -> Tuple:
        return ()


@dataclass(frozen=True)
class VoidType(Type):

    @property
    def kind(self) -> TypeKind:
        return TypeKind.VOID

    def __str__(self) -> str:
        return 'void'


@dataclass(frozen=True)
class IntegerType(Type):
    bits: int = 32

    def __post_init__(self):
        if self.bits < 1:
            raise ValueError(f"integer width must be positive, got {self.bits}")

    @property
    def kind(self) -> TypeKind:
        return TypeKind.INTEGER

    def _detail_key(self) -> Tuple:
        return (self.bits,)

    def __str__(self) -> str:
        return f'i{self.bits}'


@dataclass(frozen=True)
class FloatType(Type):
    """Single-precision float."""

    @property
    def kind(self) -> TypeKind:
        return TypeKind.FLOAT

    def __str__(self) -> str:
        return 'float'


@dataclass(frozen=True)
class DoubleType(Type):
    """Double-precision float."""

    @property
    def kind(self) -> TypeKind:
        return TypeKind.DOUBLE

    def __str__(self) -> str:
        return 'double'


@dataclass(frozen=True)
class PointerType(Type):
    pointee: Type

    @property
    def kind(self) -> TypeKind:
        return TypeKind.POINTER

    def _detail_key(self) -> Tuple:
        return self.pointee.sort_key()

    def __str__(self) -> str:
        return f'{self.pointee}*'


@dataclass(frozen=True)
class ArrayType(Type):
    element: Type
    count: int

    @property
    def kind(self) -> TypeKind:
        return TypeKind.ARRAY

    def _detail_key(self) -> Tuple:
        return (self.count,) + self.element.sort_key()

    def __str__(self) -> str:
        return f'[{self.count} x {self.element}]'


@dataclass(frozen=True)
class StructType(Type):
    fields: Tuple[Type, ...] = ()

    @property
    def kind(self) -> TypeKind:
        return TypeKind.STRUCT

    def _detail_key(self) -> Tuple:
        return (len(self.fields),) + tuple(f.sort_key() for f in self.fields)

    def __str__(self) -> str:
        return '{' + ', '.join(str(f) for f in self.fields) + '}'


# Shared instances for the common types.
VOID = VoidType()
I1 = IntegerType(1)
I8 = IntegerType(8)
I32 = IntegerType(32)
I64 = IntegerType(64)
FLOAT = FloatType()
DOUBLE = DoubleType()


def pointer_to(pointee: Type) -> PointerType:
    return PointerType(pointee)

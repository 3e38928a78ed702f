"""
Purity Oracle
=============

Answers "does calling this function have observable side effects?" for the
memoization classifier, from facts the host IR already carries: function
attributes, intrinsic names and a registry of well-known library routines.

Purity lattice:

    PURE ⊂ READ_ONLY ⊂ IMPURE ⊂ UNKNOWN

    - PURE: result depends only on the arguments, no memory effects
      (``readnone`` / ``speculatable``, declared libm routines, debug intrinsics)
    - READ_ONLY: may read memory but never writes it (``readonly``)
    - IMPURE: known to perform I/O, allocation or other observable effects
    - UNKNOWN: nothing is known; treated as impure

Only PURE callees are transparent to memoization. Everything else has to be
proven memoizable by the classifier's recursive walk.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import FrozenSet, List, Optional, Set

from irmemo.ir.program import Function


class PurityLevel(IntEnum):
    """Higher values = less is known / more impure."""
    PURE = 0
    READ_ONLY = 1
    IMPURE = 2
    UNKNOWN = 3


@dataclass
class PurityReport:
    function_name: str
    level: PurityLevel
    reasons: List[str] = field(default_factory=list)

    @property
    def is_side_effect_free(self) -> bool:
        return self.level == PurityLevel.PURE


# ═══════════════════════════════════════════════════════════════════════════
# Known-pure and known-impure registries
# ═══════════════════════════════════════════════════════════════════════════

_PURE_ATTRIBUTES: FrozenSet[str] = frozenset({'readnone', 'speculatable'})
_READ_ONLY_ATTRIBUTES: FrozenSet[str] = frozenset({'readonly'})

# libm routines with no side effects (errno aside, which the IR does not model).
_KNOWN_PURE_FUNCTIONS: FrozenSet[str] = frozenset({
    'abs', 'labs', 'llabs',
    'acos', 'asin', 'atan', 'atan2', 'cos', 'sin', 'tan',
    'cosh', 'sinh', 'tanh', 'exp', 'exp2', 'expm1',
    'log', 'log2', 'log10', 'log1p', 'pow', 'sqrt', 'cbrt',
    'fabs', 'floor', 'ceil', 'round', 'trunc', 'fmod',
    'fmin', 'fmax', 'copysign', 'hypot',
    'acosf', 'asinf', 'atanf', 'cosf', 'sinf', 'tanf', 'expf',
    'logf', 'powf', 'sqrtf', 'fabsf', 'floorf', 'ceilf',
})

_KNOWN_IMPURE_FUNCTIONS: FrozenSet[str] = frozenset({
    'printf', 'fprintf', 'sprintf', 'puts', 'putchar', 'scanf',
    'fopen', 'fclose', 'fread', 'fwrite', 'read', 'write',
    'malloc', 'calloc', 'realloc', 'free',
    'rand', 'srand', 'random', 'time', 'clock', 'getenv',
    'exit', 'abort', 'memcpy', 'memset', 'memmove',
})

# Intrinsic families that never affect program state.
_PURE_INTRINSIC_PREFIXES = ('llvm.dbg.', 'llvm.lifetime.', 'llvm.assume')


def _base_intrinsic_name(name: str) -> Optional[str]:
    """``llvm.sqrt.f64`` -> ``sqrt``."""
    if not name.startswith('llvm.'):
        return None
    parts = name.split('.')
    return parts[1] if len(parts) > 1 else None


class PurityOracle:
    """
    Classifies functions on the purity lattice.

    Usage:
        oracle = PurityOracle(extra_pure={'hash32'})
        oracle.is_side_effect_free(fn)

    The analysis is conservative: absent evidence of purity, a function
    is never reported PURE.
    """

    def __init__(
        self,
        *,
        extra_pure: Optional[Set[str]] = None,
        extra_impure: Optional[Set[str]] = None,
    ):
        """
        Args:
            extra_pure:   Additional function names to treat as pure, even
                          when the module defines a body for them.
            extra_impure: Additional function names to treat as impure.
        """
        self._pure_functions = set(_KNOWN_PURE_FUNCTIONS)
        self._impure_functions = set(_KNOWN_IMPURE_FUNCTIONS)
        self._extra_pure = set(extra_pure or ())
        if extra_pure:
            self._pure_functions |= extra_pure
            self._impure_functions -= extra_pure
        if extra_impure:
            self._impure_functions |= extra_impure
            self._pure_functions -= extra_impure
            self._extra_pure -= extra_impure

    def analyze(self, fn: Function) -> PurityReport:
        name = fn.name
        if name in self._impure_functions:
            return PurityReport(name, PurityLevel.IMPURE, [f"Known side-effecting routine: {name}"])

        pure_attrs = fn.attributes & _PURE_ATTRIBUTES
        if pure_attrs:
            return PurityReport(
                name, PurityLevel.PURE,
                [f"Attributes: {', '.join(sorted(pure_attrs))}"],
            )
        if name in self._extra_pure:
            return PurityReport(name, PurityLevel.PURE, [f"Declared pure: {name}"])
        # A body under a library name is user code, not the library routine.
        if name in self._pure_functions and fn.is_declaration:
            return PurityReport(name, PurityLevel.PURE, [f"Known pure routine: {name}"])
        if fn.is_intrinsic:
            if name.startswith(_PURE_INTRINSIC_PREFIXES):
                return PurityReport(name, PurityLevel.PURE, ["Annotation intrinsic"])
            base = _base_intrinsic_name(name)
            if base in self._pure_functions:
                return PurityReport(name, PurityLevel.PURE, [f"Pure math intrinsic: {base}"])

        if fn.attributes & _READ_ONLY_ATTRIBUTES:
            return PurityReport(name, PurityLevel.READ_ONLY, ["Attributes: readonly"])
        return PurityReport(name, PurityLevel.UNKNOWN, ["No purity evidence"])

    def is_side_effect_free(self, fn: Function) -> bool:
        return self.analyze(fn).is_side_effect_free

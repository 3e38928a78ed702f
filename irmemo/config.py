"""Configuration for the memoization pass."""

from dataclasses import dataclass, fields
from typing import Any, Mapping

from irmemo.errors import ConfigError

MEMO_PREFIX = '_memoized__'

# Call-stack depth bound for the recursive call-graph check, as chosen in
# Suresh et al., "Compile Time Function Memoization".
MAX_DEPTH = 10


@dataclass(frozen=True)
class MemoizeConfig:
    """
    Knobs shared by the classifier, the rewriter and the pass driver.

    Attributes:
        max_depth:           Nested non-pure calls allowed below a top-level
                             function before its classification fails.
        memo_prefix:         Name tag of memoized functions.
        synthesize_uncalled: Synthesize a memoized symbol even for eligible
                             functions that have no call sites.
        allow_recursion:     Treat a call back into a function already on the
                             classification path as transparent.
        fold_constants:      Move literal constant arguments into the
                             memoization key instead of a parameter slot.
        strict:              Propagate IRConsistencyError out of the driver.
    """
    max_depth: int = MAX_DEPTH
    memo_prefix: str = MEMO_PREFIX
    synthesize_uncalled: bool = False
    allow_recursion: bool = False
    fold_constants: bool = True
    strict: bool = False

    def __post_init__(self):
        if self.max_depth < 1:
            raise ConfigError(f"max_depth must be at least 1, got {self.max_depth}")
        if not self.memo_prefix:
            raise ConfigError("memo_prefix must not be empty")

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> 'MemoizeConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")
        return cls(**options)

    def memoized_name(self, name: str) -> str:
        return f'{self.memo_prefix}{name}'

    def is_memoized_name(self, name: str) -> bool:
        return name.startswith(self.memo_prefix)

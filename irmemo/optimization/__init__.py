"""
Program transformations: call-site rewriting and the whole-module pass.
"""

from irmemo.optimization.call_site_rewriter import (
    CallSiteRewriter,
    CanonicalSlot,
    RewritePlan,
    canonical_slots,
)
from irmemo.optimization.memoize_pass import (
    MemoizePass,
    PassResult,
    memoize_module,
)

__all__ = [
    'CallSiteRewriter',
    'CanonicalSlot',
    'RewritePlan',
    'canonical_slots',
    'MemoizePass',
    'PassResult',
    'memoize_module',
]

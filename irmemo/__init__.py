"""
irmemo: Compile-Time Function Memoization
=========================================

A whole-program transformation over an SSA-style IR that finds functions
whose calls can be replaced by cached results and gives them a canonical,
argument-normalized calling convention.

Core Components:
    - ir: types, values, instructions, blocks, functions and modules
    - analysis: purity oracle and the bounded recursive eligibility check
    - optimization: call-site rewriting and the whole-module pass
    - metadata: descriptors handed to the memoization runtime

Usage:
    >>> from irmemo import MemoizePass
    >>> result = MemoizePass().run(module)
    >>> for d in result.descriptors:
    ...     print(d.original_name, '->', d.memoized_name, d.constant_key_fragments)

Based on Suresh et al., "Compile Time Function Memoization".
"""

__version__ = "1.0.0"

from irmemo.config import MemoizeConfig, MEMO_PREFIX, MAX_DEPTH
from irmemo.errors import (
    MemoizeError,
    ConfigError,
    RewritePreconditionError,
    IRConsistencyError,
)
from irmemo.metadata import MemoDescriptor, MetadataSink, CollectingSink, JsonLinesSink
from irmemo.analysis.purity_oracle import PurityOracle, PurityLevel, PurityReport
from irmemo.analysis.eligibility import EligibilityClassifier, EligibilityReport, RejectReason
from irmemo.optimization.call_site_rewriter import CallSiteRewriter, RewritePlan
from irmemo.optimization.memoize_pass import MemoizePass, PassResult, memoize_module

__all__ = [
    'MemoizeConfig',
    'MEMO_PREFIX',
    'MAX_DEPTH',
    'MemoizeError',
    'ConfigError',
    'RewritePreconditionError',
    'IRConsistencyError',
    'MemoDescriptor',
    'MetadataSink',
    'CollectingSink',
    'JsonLinesSink',
    'PurityOracle',
    'PurityLevel',
    'PurityReport',
    'EligibilityClassifier',
    'EligibilityReport',
    'RejectReason',
    'CallSiteRewriter',
    'RewritePlan',
    'MemoizePass',
    'PassResult',
    'memoize_module',
]

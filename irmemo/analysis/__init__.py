"""
Read-only analyses behind the memoization decision: the purity oracle,
shared IR queries and the eligibility classifier.
"""

from irmemo.analysis.purity_oracle import (
    PurityOracle,
    PurityLevel,
    PurityReport,
)
from irmemo.analysis.eligibility import (
    EligibilityClassifier,
    EligibilityReport,
    RejectReason,
)
from irmemo.analysis.ir_queries import (
    collect_free_globals,
    is_safe_argument,
)

__all__ = [
    'PurityOracle',
    'PurityLevel',
    'PurityReport',
    'EligibilityClassifier',
    'EligibilityReport',
    'RejectReason',
    'collect_free_globals',
    'is_safe_argument',
]

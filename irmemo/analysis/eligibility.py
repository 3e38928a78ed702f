"""
Eligibility Classifier
======================

Decides whether a function may be memoized, i.e. whether replacing repeated
calls with a cached result is observably equivalent to calling it.

Decision procedure (first failing check wins):

    1. Structure:    declarations, intrinsics, variadic functions and
                     functions that may be replaced at link time are out.
    2. Tag:          functions already carrying the memoized-name tag are
                     accepted outright (library / previously rewritten).
    3. Arguments:    pointer parameters may only be loaded from or stored
                     through; any other use lets the pointer escape.
    4. Globals:      at most one distinct global cell, and it must hold a
                     plain integer, float or double.
    5. Call graph:   every callee is either side-effect-free according to
                     the purity oracle or is itself memoizable, checked
                     recursively up to a bounded call-stack depth.

Depth accounting:
    The depth is a property of the path being explored, not of the walk as
    a whole. It is passed down each recursive descent and is never shared
    between sibling call sites, so a successful deep branch does not eat
    into the budget of the calls that follow it. Reaching the bound fails
    the top-level classification (unknown counts as not memoizable).

    Within one top-level walk every callee proven memoizable is remembered
    with the deepest depth it was proven at. A later call to it at that depth
    or shallower has at least as much budget left and is not walked again,
    so each function is classified at most ``max_depth`` times per walk.

    Recursion is not special-cased by default: a cycle keeps descending until
    it hits the bound. ``allow_recursion`` makes calls back into a function
    already on the path transparent instead.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from irmemo.analysis.ir_queries import (
    call_instructions,
    collect_free_globals,
    is_safe_argument,
    unsafe_pointer_uses,
)
from irmemo.analysis.purity_oracle import PurityOracle
from irmemo.config import MemoizeConfig
from irmemo.ir.program import Function
from irmemo.ir.values import GlobalVariable

logger = logging.getLogger(__name__)


class RejectReason(Enum):
    DECLARATION = 'declaration'
    INTRINSIC = 'intrinsic'
    VARIADIC = 'variadic'
    OVERRIDABLE = 'may-be-overridden'
    UNSAFE_POINTER_ARGUMENT = 'unsafe-pointer-argument'
    NON_SCALAR_GLOBAL = 'non-scalar-global'
    MULTIPLE_GLOBALS = 'multiple-globals'
    STACK_DEPTH_EXCEEDED = 'stack-depth-exceeded'
    CALLEE_NOT_MEMOIZABLE = 'callee-not-memoizable'


@dataclass
class EligibilityReport:
    """Outcome of classifying one function, with the evidence behind it."""
    function_name: str
    memoizable: bool
    reason: Optional[RejectReason] = None
    detail: str = ''
    already_memoized: bool = False
    free_globals: List[GlobalVariable] = field(default_factory=list)
    pure_callees: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.memoizable

    def describe(self) -> str:
        if self.memoizable:
            return 'already memoized' if self.already_memoized else 'memoizable'
        if self.detail:
            return f'{self.reason.value} ({self.detail})'
        return self.reason.value


class EligibilityClassifier:
    """
    Classifies functions as memoizable or not.

    Usage:
        classifier = EligibilityClassifier()
        if classifier.is_memoizable(fn):
            ...
        report = classifier.classify(fn)
        print(report.describe())

    Classification never mutates the program.
    """

    def __init__(
        self,
        config: Optional[MemoizeConfig] = None,
        oracle: Optional[PurityOracle] = None,
    ):
        self.config = config or MemoizeConfig()
        self.oracle = oracle or PurityOracle()
        self._reports: Dict[Function, EligibilityReport] = {}

    # ───────────────────────────────────────────────────────────────
    #  Public API
    # ───────────────────────────────────────────────────────────────

    def classify(self, fn: Function) -> EligibilityReport:
        """Top-level classification: starts a fresh depth budget."""
        report = self._classify(fn, depth=0, path=(fn,), verified={})
        self._reports[fn] = report
        if report.already_memoized:
            logger.debug("Already memoized: %s", fn.name)
        elif not report.memoizable:
            logger.debug("Rejected %s: %s", fn.name, report.describe())
        return report

    def is_memoizable(self, fn: Function) -> bool:
        return self.classify(fn).memoizable

    def last_report(self, fn: Function) -> Optional[EligibilityReport]:
        """Most recent top-level report for ``fn``, if any."""
        return self._reports.get(fn)

    # ───────────────────────────────────────────────────────────────
    #  Core analysis
    # ───────────────────────────────────────────────────────────────

    def _classify(
        self,
        fn: Function,
        depth: int,
        path: Tuple[Function, ...],
        verified: Dict[Function, int],
    ) -> EligibilityReport:
        reason = self._structural_reason(fn)
        if reason is not None:
            return EligibilityReport(fn.name, False, reason)

        if self.config.is_memoized_name(fn.name):
            return EligibilityReport(fn.name, True, already_memoized=True)

        for arg in fn.arguments:
            if not is_safe_argument(arg):
                uses = ', '.join(u.opcode.value for u in unsafe_pointer_uses(arg))
                return EligibilityReport(
                    fn.name, False, RejectReason.UNSAFE_POINTER_ARGUMENT,
                    f"%{arg.name} used by {uses}",
                )

        free_globals = collect_free_globals(fn)
        for gv in free_globals:
            if not gv.value_type.is_scalar:
                return EligibilityReport(
                    fn.name, False, RejectReason.NON_SCALAR_GLOBAL,
                    f"@{gv.name} holds {gv.value_type}", free_globals=free_globals,
                )
        if len(free_globals) > 1:
            names = ', '.join(f'@{gv.name}' for gv in free_globals)
            return EligibilityReport(
                fn.name, False, RejectReason.MULTIPLE_GLOBALS, names,
                free_globals=free_globals,
            )

        report = EligibilityReport(fn.name, True, free_globals=free_globals)
        return self._check_calls(fn, depth, path, verified, report)

    def _structural_reason(self, fn: Function) -> Optional[RejectReason]:
        if fn.is_declaration:
            return RejectReason.DECLARATION
        if fn.is_intrinsic:
            return RejectReason.INTRINSIC
        if fn.is_variadic:
            return RejectReason.VARIADIC
        if fn.may_be_overridden:
            return RejectReason.OVERRIDABLE
        return None

    def _check_calls(
        self,
        fn: Function,
        depth: int,
        path: Tuple[Function, ...],
        verified: Dict[Function, int],
        report: EligibilityReport,
    ) -> EligibilityReport:
        for call in call_instructions(fn):
            callee = call.callee
            if self.oracle.is_side_effect_free(callee):
                logger.debug("Pure Function: %s", callee.name)
                report.pure_callees.append(callee.name)
                continue

            if self.config.allow_recursion and callee in path:
                continue

            callee_depth = depth + 1
            if callee_depth >= self.config.max_depth:
                report.memoizable = False
                report.reason = RejectReason.STACK_DEPTH_EXCEEDED
                report.detail = f"call to '{callee.name}' at depth {callee_depth}"
                return report

            # A callee proven at depth d also fits any shallower call.
            if callee_depth <= verified.get(callee, -1):
                continue

            callee_report = self._classify(callee, callee_depth, path + (callee,), verified)
            if callee_report.memoizable:
                verified[callee] = callee_depth
                continue

            report.memoizable = False
            if callee_report.reason is RejectReason.STACK_DEPTH_EXCEEDED:
                report.reason = RejectReason.STACK_DEPTH_EXCEEDED
                report.detail = f"via '{callee.name}': {callee_report.detail}"
            else:
                report.reason = RejectReason.CALLEE_NOT_MEMOIZABLE
                report.detail = f"'{callee.name}': {callee_report.describe()}"
            return report
        return report

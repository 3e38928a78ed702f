"""
Call-Site Rewriter
==================

Gives an approved function a memoized twin with a canonical calling
convention and redirects every call site to it.

Canonical signature:
    slots  = explicit parameters (declaration order)
           + free globals read or written by the function (first-use order,
             passed as implicit trailing pointer arguments)
    order  = stable sort of the slots by the total order over types, ties
             broken by declaration index

    A slot is folded out of the runtime signature when every call site
    passes a literal constant there. The folded constants of one call site,
    in canonical order, form its memoization key fragment. A slot that is
    constant at only some call sites stays a runtime parameter and is
    reported in the descriptor as partially constant.

Rewriting happens in two phases. ``plan`` is read-only and performs every
consistency check; ``apply`` only mutates. A function whose plan fails is
left exactly as it was.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from irmemo.analysis.eligibility import EligibilityClassifier, EligibilityReport
from irmemo.config import MemoizeConfig
from irmemo.errors import IRConsistencyError, RewritePreconditionError
from irmemo.ir.builder import IRBuilder
from irmemo.ir.program import Function, Instruction, Linkage, Opcode
from irmemo.ir.types import Type
from irmemo.ir.values import GlobalVariable, Value, ValueKind, unhandled_value_kind
from irmemo.metadata import MemoDescriptor, MetadataSink
from irmemo.utils.helpers import stable_unique

logger = logging.getLogger(__name__)


@dataclass
class CanonicalSlot:
    """One position of the canonical parameter list."""
    index: int
    type: Type
    name: str
    global_variable: Optional[GlobalVariable] = None

    @property
    def is_implicit(self) -> bool:
        return self.global_variable is not None


@dataclass
class CallSitePlan:
    call: Instruction
    arguments: List[Value]
    key_fragment: str = ''


@dataclass
class RewritePlan:
    function: Function
    memoized_name: str
    slots: List[CanonicalSlot]
    folded: List[int] = field(default_factory=list)
    partially_constant: List[int] = field(default_factory=list)
    call_sites: List[CallSitePlan] = field(default_factory=list)

    @property
    def kept_slots(self) -> List[CanonicalSlot]:
        folded = set(self.folded)
        return [s for pos, s in enumerate(self.slots) if pos not in folded]

    @property
    def parameter_types(self) -> List[Type]:
        return [s.type for s in self.kept_slots]

    @property
    def key_fragments(self) -> List[str]:
        return stable_unique(site.key_fragment for site in self.call_sites if site.key_fragment)

    def describe(self, memoized: Function) -> MemoDescriptor:
        return MemoDescriptor(
            original_name=self.function.name,
            memoized_name=memoized.name,
            parameter_order=[str(t) for t in self.parameter_types],
            constant_key_fragments=self.key_fragments,
            parameter_names=[s.name for s in self.kept_slots],
            folded_slots=[self.slots[pos].index for pos in self.folded],
            partially_constant_slots=[
                self.slots[pos].index for pos in self.partially_constant
            ],
            call_sites=len(self.call_sites),
        )


def canonical_slots(fn: Function, free_globals: List[GlobalVariable]) -> List[CanonicalSlot]:
    """Parameters plus implicit global slots, in canonical order."""
    slots = [CanonicalSlot(a.index, a.type, a.name) for a in fn.arguments]
    base = len(slots)
    slots += [
        CanonicalSlot(base + i, gv.type, gv.name, global_variable=gv)
        for i, gv in enumerate(free_globals)
    ]
    return sorted(slots, key=lambda s: (s.type.sort_key(), s.index))


def _is_literal(value: Value) -> bool:
    kind = value.kind
    if kind is ValueKind.CONSTANT:
        return True
    if kind in (ValueKind.ARGUMENT, ValueKind.GLOBAL_VARIABLE, ValueKind.INSTRUCTION_RESULT):
        return False
    unhandled_value_kind(value)


class CallSiteRewriter:
    """
    Rewrites call sites of memoizable functions.

    Usage:
        rewriter = CallSiteRewriter(classifier, sink=CollectingSink())
        descriptor = rewriter.rewrite_call_sites(fn)

    ``rewrite_call_sites`` refuses (``RewritePreconditionError``) to touch a
    function the classifier rejects, and raises ``IRConsistencyError`` for
    malformed call sites; in both cases before any mutation.
    """

    def __init__(
        self,
        classifier: Optional[EligibilityClassifier] = None,
        config: Optional[MemoizeConfig] = None,
        sink: Optional[MetadataSink] = None,
    ):
        if classifier is None:
            classifier = EligibilityClassifier(config)
        self.classifier = classifier
        self.config = config or classifier.config
        self.sink = sink

    # ───────────────────────────────────────────────────────────────
    #  Public API
    # ───────────────────────────────────────────────────────────────

    def rewrite_call_sites(
        self, fn: Function, report: Optional[EligibilityReport] = None
    ) -> Optional[MemoDescriptor]:
        """Rewrite every call of ``fn``.

        Returns the emitted descriptor, or ``None`` when nothing changed
        (already memoized, or no call sites under the default policy).
        """
        plan = self.plan(fn, report)
        if plan is None:
            return None
        memoized = self.apply(plan)
        descriptor = plan.describe(memoized)
        if self.sink is not None:
            self.sink.emit(descriptor)
        logger.info("Memoized Function: %s", memoized.name)
        return descriptor

    def plan(
        self, fn: Function, report: Optional[EligibilityReport] = None
    ) -> Optional[RewritePlan]:
        if self.config.is_memoized_name(fn.name):
            return None
        if report is None or report.function_name != fn.name:
            report = self.classifier.classify(fn)
        if not report.memoizable:
            raise RewritePreconditionError(fn.name, report.describe())
        if fn.module is None:
            raise IRConsistencyError(fn.name, "function is not part of a module")

        call_sites = fn.module.call_sites_of(fn)
        for call in call_sites:
            self._check_call_site(fn, call)
        if not call_sites and not self.config.synthesize_uncalled:
            logger.debug("No call sites: %s", fn.name)
            return None

        slots = canonical_slots(fn, report.free_globals)
        implicit = list(report.free_globals)
        ordered_args: List[List[Value]] = []
        for call in call_sites:
            actual = call.arguments + implicit
            ordered_args.append([actual[slot.index] for slot in slots])

        folded: List[int] = []
        partial: List[int] = []
        for pos in range(len(slots)):
            literal = [_is_literal(args[pos]) for args in ordered_args]
            if not any(literal):
                continue
            if all(literal) and self.config.fold_constants:
                folded.append(pos)
            elif not all(literal):
                partial.append(pos)

        plan = RewritePlan(
            fn, self.config.memoized_name(fn.name), slots, folded, partial,
        )
        for call, args in zip(call_sites, ordered_args):
            plan.call_sites.append(CallSitePlan(
                call,
                [a for pos, a in enumerate(args) if pos not in folded],
                ','.join(args[pos].key_text() for pos in folded),
            ))
        self._check_existing_target(plan)
        return plan

    def apply(self, plan: RewritePlan) -> Function:
        """Materialise a plan: synthesize (or reuse) the target, swap calls."""
        module = plan.function.module
        target = module.get_function(plan.memoized_name)
        if target is None:
            target = module.add_function(self._synthesize(plan))

        for site in plan.call_sites:
            old = site.call
            name = old.result.name if old.result is not None else ''
            new = Instruction(
                Opcode.CALL, site.arguments, target.return_type, callee=target, name=name,
            )
            old.parent.insert_before(new, old)
            if old.result is not None:
                old.result.replace_all_uses_with(new.result)
            old.erase()
        return target

    # ───────────────────────────────────────────────────────────────
    #  Helpers
    # ───────────────────────────────────────────────────────────────

    @staticmethod
    def _check_call_site(fn: Function, call: Instruction):
        args = call.arguments
        if len(args) != len(fn.arguments):
            raise IRConsistencyError(
                fn.name,
                f"call site passes {len(args)} argument(s), "
                f"function takes {len(fn.arguments)}",
            )
        for actual, formal in zip(args, fn.arguments):
            if actual.type != formal.type:
                raise IRConsistencyError(
                    fn.name,
                    f"argument %{formal.name} expects {formal.type}, call passes {actual.type}",
                )

    @staticmethod
    def _check_existing_target(plan: RewritePlan):
        existing = plan.function.module.get_function(plan.memoized_name)
        if existing is None:
            return
        if (existing.param_types != plan.parameter_types
                or existing.return_type != plan.function.return_type):
            raise IRConsistencyError(
                plan.function.name,
                f"'{plan.memoized_name}' already exists with a different signature",
            )

    @staticmethod
    def _synthesize(plan: RewritePlan) -> Function:
        """Memoized entry point: a single ``memo_lookup`` over its parameters."""
        kept = plan.kept_slots
        original = plan.function
        memoized = Function(
            plan.memoized_name,
            [s.type for s in kept],
            original.return_type,
            param_names=[s.name for s in kept],
            linkage=Linkage.EXTERNAL,
        )
        builder = IRBuilder(memoized.append_block('entry'))
        lookup = builder.memo_lookup(memoized.arguments, original.return_type, name='memo')
        builder.ret(lookup.result)
        return memoized

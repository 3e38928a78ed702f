"""
Memoization Pass
================

Whole-module driver: classify every function, rewrite the call sites of the
eligible ones and hand one descriptor per rewritten function to the metadata
sink.

Functions are visited in declaration order over a snapshot of the module, so
the outcome is reproducible and the functions synthesized during the run are
not revisited. Each function's rewrite completes (or is abandoned untouched)
before the next function is classified.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from irmemo.analysis.eligibility import EligibilityClassifier, RejectReason
from irmemo.analysis.purity_oracle import PurityOracle
from irmemo.config import MemoizeConfig
from irmemo.errors import IRConsistencyError
from irmemo.ir.program import Module
from irmemo.metadata import CollectingSink, MemoDescriptor, MetadataSink
from irmemo.optimization.call_site_rewriter import CallSiteRewriter
from irmemo.utils.helpers import Timer, format_ns

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """Statistics and outcome of one run over a module."""
    module_name: str
    visited: List[str] = field(default_factory=list)
    memoized: Dict[str, str] = field(default_factory=dict)
    rejected: Dict[str, RejectReason] = field(default_factory=dict)
    descriptors: List[MemoDescriptor] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    elapsed_ns: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.memoized)

    def summary(self) -> str:
        return (
            f"{self.module_name}: {len(self.visited)} visited, "
            f"{len(self.memoized)} memoized, {len(self.rejected)} rejected, "
            f"{len(self.errors)} error(s) in {format_ns(self.elapsed_ns)}"
        )


class MemoizePass:
    """
    Compile-time function memoization over a module.

    Usage:
        >>> result = MemoizePass().run(module)
        >>> result.memoized
        {'add': '_memoized__add'}
    """

    def __init__(
        self,
        config: Optional[MemoizeConfig] = None,
        oracle: Optional[PurityOracle] = None,
        sink: Optional[MetadataSink] = None,
        enable_logging: bool = False,
    ):
        self.config = config or MemoizeConfig()
        self.classifier = EligibilityClassifier(self.config, oracle)
        self.sink = sink if sink is not None else CollectingSink()
        self.rewriter = CallSiteRewriter(self.classifier, self.config, self.sink)

        if enable_logging:
            logging.basicConfig(level=logging.DEBUG)

    def run(self, module: Module) -> PassResult:
        result = PassResult(module.name)
        logger.info("Memoize: %s", module.name)

        with Timer() as timer:
            for fn in list(module.functions):
                logger.debug("Function: %s", fn.name)
                result.visited.append(fn.name)

                report = self.classifier.classify(fn)
                if not report.memoizable:
                    result.rejected[fn.name] = report.reason
                    continue
                if report.already_memoized:
                    continue

                try:
                    descriptor = self.rewriter.rewrite_call_sites(fn, report)
                except IRConsistencyError as exc:
                    if self.config.strict:
                        raise
                    logger.warning("Skipping %s: %s", fn.name, exc)
                    result.errors[fn.name] = str(exc)
                    continue

                if descriptor is not None:
                    result.memoized[fn.name] = descriptor.memoized_name
                    result.descriptors.append(descriptor)

        result.elapsed_ns = timer.elapsed_ns
        logger.info("%s", result.summary())
        return result


def memoize_module(module: Module, **options) -> PassResult:
    """Run the pass with ``MemoizeConfig`` options given as keywords."""
    return MemoizePass(MemoizeConfig.from_dict(options)).run(module)

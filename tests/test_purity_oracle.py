"""
Tests for the Purity Oracle.
"""

from irmemo.analysis.purity_oracle import PurityLevel, PurityOracle, PurityReport
from irmemo.ir import DOUBLE, I32, VOID, Constant, Function, IRBuilder, Module, Opcode


def defined(name, attributes=()):
    fn = Function(name, [I32], I32, attributes=attributes)
    b = IRBuilder(fn.append_block())
    b.ret(b.binop(Opcode.ADD, fn.arguments[0], fn.arguments[0]))
    return fn


class TestPurityLevel:

    def test_level_ordering(self):
        assert PurityLevel.PURE < PurityLevel.READ_ONLY
        assert PurityLevel.READ_ONLY < PurityLevel.IMPURE
        assert PurityLevel.IMPURE < PurityLevel.UNKNOWN

    def test_report_side_effect_free(self):
        assert PurityReport('f', PurityLevel.PURE).is_side_effect_free
        assert not PurityReport('f', PurityLevel.READ_ONLY).is_side_effect_free


class TestPurityOracle:

    def setup_method(self):
        self.oracle = PurityOracle()

    def test_readnone_attribute(self):
        report = self.oracle.analyze(defined('mix', attributes={'readnone'}))
        assert report.level == PurityLevel.PURE
        assert 'readnone' in report.reasons[0]

    def test_speculatable_attribute(self):
        assert self.oracle.is_side_effect_free(Function('f', attributes={'speculatable'}))

    def test_known_pure_libm(self):
        assert self.oracle.is_side_effect_free(Function('sqrt', [DOUBLE], DOUBLE))

    def test_math_intrinsic(self):
        report = self.oracle.analyze(Function('llvm.sqrt.f64', [DOUBLE], DOUBLE))
        assert report.level == PurityLevel.PURE

    def test_debug_intrinsic(self):
        assert self.oracle.is_side_effect_free(Function('llvm.dbg.value', [I32], VOID))

    def test_unknown_intrinsic(self):
        report = self.oracle.analyze(Function('llvm.memcpy.p0.p0.i64', [I32], VOID))
        assert report.level == PurityLevel.UNKNOWN

    def test_readonly_is_not_transparent(self):
        report = self.oracle.analyze(defined('peek', attributes={'readonly'}))
        assert report.level == PurityLevel.READ_ONLY
        assert not report.is_side_effect_free

    def test_known_impure_wins_over_attributes(self):
        report = self.oracle.analyze(Function('printf', attributes={'readnone'}))
        assert report.level == PurityLevel.IMPURE

    def test_plain_definition_is_unknown(self):
        report = self.oracle.analyze(defined('helper'))
        assert report.level == PurityLevel.UNKNOWN
        assert not self.oracle.is_side_effect_free(defined('helper'))

    def test_extra_pure(self):
        oracle = PurityOracle(extra_pure={'hash32', 'malloc'})
        assert oracle.is_side_effect_free(Function('hash32'))
        assert oracle.is_side_effect_free(Function('malloc'))

    def test_extra_impure(self):
        oracle = PurityOracle(extra_impure={'sqrt'})
        assert oracle.analyze(Function('sqrt')).level == PurityLevel.IMPURE

    def test_library_name_with_user_body_is_not_pure(self):
        module = Module('user_log')
        counter = module.add_global('calls', I32, Constant.of_int(I32, 0))
        log = module.add_function(Function('log', [I32], I32, param_names=['x']))
        b = IRBuilder(log.append_block())
        b.store(b.binop(Opcode.ADD, b.load(counter), Constant.of_int(I32, 1)), counter)
        b.ret(log.arguments[0])
        report = self.oracle.analyze(log)
        assert report.level == PurityLevel.UNKNOWN
        assert not self.oracle.is_side_effect_free(log)

    def test_library_name_declaration_is_pure(self):
        assert self.oracle.is_side_effect_free(Function('log', [DOUBLE], DOUBLE))

    def test_extra_pure_applies_to_definitions(self):
        oracle = PurityOracle(extra_pure={'helper'})
        assert oracle.is_side_effect_free(defined('helper'))

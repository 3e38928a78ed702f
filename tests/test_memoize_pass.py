"""
End-to-end tests for the whole-module memoization pass.
"""

import io
import json
import logging

import pytest

from irmemo import (
    CollectingSink, ConfigError, IRConsistencyError, JsonLinesSink,
    MemoizeConfig, MemoizePass, RejectReason, memoize_module,
)
from irmemo.analysis.purity_oracle import PurityOracle
from irmemo.ir import (
    DOUBLE, I32, Constant, Function, IRBuilder, Module, Opcode, format_module, pointer_to,
)


def build_program():
    """
    int g;
    int add(int a, int* p) { *p += g; return a + *p; }
    double scale(double x) { return sqrt(x) * x; }
    int noisy(int v) { log_event(v); return v; }
    int trace() { return noisy(2); }
    int main() { int y; return add(3, &y) + (int) scale(4.0); }
    """
    module = Module('program')
    g = module.add_global('g', I32, Constant.of_int(I32, 0))

    add = module.add_function(Function('add', [I32, pointer_to(I32)], I32,
                                       param_names=['a', 'p']))
    b = IRBuilder(add.append_block('entry'))
    a, p = add.arguments
    b.store(b.binop(Opcode.ADD, b.load(p), b.load(g)), p)
    b.ret(b.binop(Opcode.ADD, a, b.load(p)))

    sqrt = module.add_function(Function('sqrt', [DOUBLE], DOUBLE, param_names=['x']))
    scale = module.add_function(Function('scale', [DOUBLE], DOUBLE, param_names=['x']))
    b = IRBuilder(scale.append_block('entry'))
    x = scale.arguments[0]
    b.ret(b.binop(Opcode.FMUL, b.call(sqrt, [x]).result, x))

    log_event = module.add_function(Function('log_event', [I32], I32, param_names=['v']))
    noisy = module.add_function(Function('noisy', [I32], I32, param_names=['v']))
    b = IRBuilder(noisy.append_block('entry'))
    b.call(log_event, noisy.arguments)
    b.ret(noisy.arguments[0])

    trace = module.add_function(Function('trace', [], I32))
    b = IRBuilder(trace.append_block('entry'))
    b.ret(b.call(noisy, [Constant.of_int(I32, 2)]).result)

    main = module.add_function(Function('main', [], I32))
    b = IRBuilder(main.append_block('entry'))
    y = b.alloca(I32, 'y')
    r1 = b.call(add, [Constant.of_int(I32, 3), y]).result
    r2 = b.cast(b.call(scale, [Constant.of_float(DOUBLE, 4.0)]).result, I32)
    b.ret(b.binop(Opcode.ADD, r1, r2))
    return module


class TestMemoizePass:

    def setup_method(self):
        self.module = build_program()
        self.sink = CollectingSink()
        self.result = MemoizePass(sink=self.sink).run(self.module)

    def test_visits_in_declaration_order(self):
        assert self.result.visited == [
            'add', 'sqrt', 'scale', 'log_event', 'noisy', 'trace', 'main',
        ]

    def test_memoized_functions(self):
        assert self.result.memoized == {
            'add': '_memoized__add',
            'scale': '_memoized__scale',
        }
        assert self.result.changed

    def test_rejections(self):
        assert self.result.rejected == {
            'sqrt': RejectReason.DECLARATION,
            'log_event': RejectReason.DECLARATION,
            'noisy': RejectReason.CALLEE_NOT_MEMOIZABLE,
            'trace': RejectReason.CALLEE_NOT_MEMOIZABLE,
        }

    def test_descriptors(self):
        by_name = self.sink.by_original_name()
        assert list(by_name) == ['add', 'scale']
        assert by_name['add'].constant_key_fragments == ['3']
        assert by_name['add'].parameter_order == ['i32*', 'i32*']
        assert by_name['scale'].constant_key_fragments == ['4']
        assert by_name['scale'].parameter_order == []
        assert self.result.descriptors == self.sink.descriptors

    def test_call_sites_exclusively_target_memoized(self):
        for original in ('add', 'scale'):
            fn = self.module.get_function(original)
            memoized = self.module.get_function(f'_memoized__{original}')
            assert self.module.call_sites_of(fn) == []
            assert len(self.module.call_sites_of(memoized)) == 1
        noisy = self.module.get_function('noisy')
        assert len(self.module.call_sites_of(noisy)) == 1

    def test_main_has_no_callers(self):
        # main is memoizable but uncalled, so nothing is synthesized for it.
        assert self.module.get_function('_memoized__main') is None
        assert 'main' not in self.result.rejected

    def test_second_run_is_stable(self):
        before = format_module(self.module)
        again = MemoizePass().run(self.module)
        assert not again.changed
        assert format_module(self.module) == before

    def test_summary(self):
        assert self.result.summary().startswith('program: 7 visited, 2 memoized, 4 rejected')


class TestPassConfiguration:

    def test_deterministic_output(self):
        first, second = build_program(), build_program()
        MemoizePass().run(first)
        MemoizePass().run(second)
        assert format_module(first) == format_module(second)

    def test_memoize_module_options(self):
        module = build_program()
        result = memoize_module(module, synthesize_uncalled=True)
        assert result.memoized['main'] == '_memoized__main'

    def test_unknown_option(self):
        with pytest.raises(ConfigError):
            memoize_module(build_program(), depth=3)

    def test_oracle_extra_pure(self):
        module = build_program()
        result = MemoizePass(oracle=PurityOracle(extra_pure={'log_event'})).run(module)
        assert 'noisy' in result.memoized

    def test_json_lines_sink(self):
        stream = io.StringIO()
        MemoizePass(sink=JsonLinesSink(stream)).run(build_program())
        records = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [r['memoized_name'] for r in records] == ['_memoized__add', '_memoized__scale']
        assert records[0]['constant_key_fragments'] == ['3']

    def test_diagnostics(self, caplog):
        caplog.set_level(logging.DEBUG, logger='irmemo')
        MemoizePass().run(build_program())
        messages = [r.getMessage() for r in caplog.records]
        assert 'Memoize: program' in messages
        assert 'Function: add' in messages
        assert 'Pure Function: sqrt' in messages
        assert 'Memoized Function: _memoized__add' in messages
        assert any(m.startswith('Rejected noisy: callee-not-memoizable') for m in messages)


class TestConsistencyErrors:

    def _broken_module(self):
        module = Module('broken')
        f = module.add_function(Function('f', [I32, I32], I32, param_names=['a', 'b']))
        b = IRBuilder(f.append_block())
        b.ret(b.binop(Opcode.ADD, *f.arguments))
        caller = module.add_function(Function('caller', [I32], I32, param_names=['x']))
        b = IRBuilder(caller.append_block())
        b.ret(b.call(f, caller.arguments).result)
        return module

    def test_error_recorded_and_function_skipped(self):
        module = self._broken_module()
        result = MemoizePass().run(module)
        assert 'f' in result.errors
        assert 'f' not in result.memoized
        assert module.get_function('_memoized__f') is None

    def test_strict_mode_raises(self):
        with pytest.raises(IRConsistencyError):
            MemoizePass(MemoizeConfig(strict=True)).run(self._broken_module())

"""
Tests for pass configuration, metadata sinks and helpers.
"""

import io
import json

import pytest

from irmemo.config import MAX_DEPTH, MEMO_PREFIX, MemoizeConfig
from irmemo.errors import ConfigError, RewritePreconditionError
from irmemo.metadata import CollectingSink, JsonLinesSink, MemoDescriptor
from irmemo.utils.helpers import Timer, format_ns, stable_unique


class TestMemoizeConfig:

    def test_defaults(self):
        config = MemoizeConfig()
        assert config.max_depth == MAX_DEPTH == 10
        assert config.memo_prefix == MEMO_PREFIX == '_memoized__'
        assert not config.synthesize_uncalled
        assert not config.allow_recursion
        assert config.fold_constants
        assert not config.strict

    def test_names(self):
        config = MemoizeConfig()
        assert config.memoized_name('add') == '_memoized__add'
        assert config.is_memoized_name('_memoized__add')
        assert not config.is_memoized_name('add_memoized__')

    def test_from_dict(self):
        config = MemoizeConfig.from_dict({'max_depth': 4, 'strict': True})
        assert config.max_depth == 4
        assert config.strict

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match='bogus'):
            MemoizeConfig.from_dict({'bogus': 1})

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            MemoizeConfig(max_depth=0)
        with pytest.raises(ConfigError):
            MemoizeConfig(memo_prefix='')


class TestSinks:

    def _descriptor(self, name='add'):
        return MemoDescriptor(
            original_name=name,
            memoized_name=f'_memoized__{name}',
            parameter_order=['i32*'],
            constant_key_fragments=['3'],
        )

    def test_collecting_sink(self):
        sink = CollectingSink()
        sink.emit(self._descriptor('a'))
        sink.emit(self._descriptor('b'))
        assert [d.original_name for d in sink.descriptors] == ['a', 'b']
        assert set(sink.by_original_name()) == {'a', 'b'}

    def test_json_lines_sink(self):
        stream = io.StringIO()
        JsonLinesSink(stream).emit(self._descriptor())
        record = json.loads(stream.getvalue())
        assert record == {
            'original_name': 'add',
            'memoized_name': '_memoized__add',
            'parameter_order': ['i32*'],
            'constant_key_fragments': ['3'],
            'parameter_names': [],
            'folded_slots': [],
            'partially_constant_slots': [],
            'call_sites': 0,
        }


class TestHelpers:

    def test_stable_unique(self):
        assert stable_unique(['5', '7', '5', '', '7']) == ['5', '7', '']

    def test_timer(self):
        with Timer() as t:
            sum(range(100))
        assert t.elapsed_ns >= 0

    def test_format_ns(self):
        assert format_ns(500) == '500 ns'
        assert format_ns(2_500_000) == '2.50 ms'

    def test_precondition_error_message(self):
        err = RewritePreconditionError('f', 'declaration')
        assert str(err) == "'f' is not memoizable (declaration)"

"""Tests for AST helpers and import collection."""

import ast

import pytest

from ottergen.codegen.ast_utils import (
    ImportCollector,
    _all,
    _assign,
    _attr,
    _name,
    _return,
    _subscript,
    _tuple,
    _union_expr,
)


def _src(node: ast.AST) -> str:
    return ast.unparse(ast.fix_missing_locations(node))


class TestHelpers:
    """Tests for the AST builder helpers."""

    def test_union(self):
        assert _src(_union_expr([_name('int'), _name('str'), ast.Constant(None)])) == 'int | str | None'

    def test_union_requires_types(self):
        with pytest.raises(ValueError):
            _union_expr([])

    def test_tuple_assignment(self):
        node = _assign(_tuple([_name('req'), _attr('iterator', 'err')]), _name('x'))
        assert _src(node) == 'req, iterator.err = x'
        assert isinstance(node.targets[0].elts[1].ctx, ast.Store)

    def test_subscript_assignment(self):
        node = _assign(_subscript('q', ast.Constant('k')), _name('v'))
        assert _src(node) == "q['k'] = v"

    def test_return_shapes(self):
        assert _src(_return([])) == 'return'
        assert _src(_return([_name('err')])) == 'return err'
        assert _src(_return([ast.Constant(None), _name('err')])) == 'return (None, err)'

    def test_all(self):
        assert _src(_all(['Client'])) == "__all__ = ('Client',)"

    def test_cannot_assign_to_call(self):
        with pytest.raises(ValueError):
            _assign(ast.Call(func=_name('f'), args=[], keywords=[]), _name('x'))


class TestImportCollector:
    """Tests for ImportCollector."""

    def test_grouped_and_sorted(self):
        collector = ImportCollector()
        collector.add_import('.models', 'Pet')
        collector.add_import('httpx', 'Client')
        collector.add_imports({'typing': {'Any'}, '.models': {'APIError'}})

        lines = [_src(stmt) for stmt in collector.to_ast()]

        assert lines == [
            'from typing import Any',
            'from httpx import Client',
            'from .models import APIError, Pet',
        ]

    def test_parent_relative(self):
        collector = ImportCollector()
        collector.add_import('..types', 'Pet')
        assert _src(collector.to_ast()[0]) == 'from ..types import Pet'

    def test_empty(self):
        collector = ImportCollector()
        assert not collector.has_imports()
        assert collector.to_ast() == []

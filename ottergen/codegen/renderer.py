"""Rendering of synthesized method bodies as Python AST.

The generated methods talk to a backend object held by the client:

    backend.new_request(method, path, query, body) -> (request, error)
    backend.do(ctx, request, result_type, select_error) -> (result, error)

Types with a text-marshal operation expose ``marshal_text() -> (bytes, error)``.
Query collections are plain ``dict[str, list[str]]`` mappings, headers are
set on ``request.headers``.
"""

import ast

from ottergen.codegen.ast_utils import (
    _argument,
    _assign,
    _attr,
    _call,
    _func,
    _if_not_none,
    _name,
    _return,
    _subscript,
    _tuple,
    _union_expr,
)
from ottergen.model import (
    ErrorConstructor,
    IdentType,
    IterType,
    Method,
    ParamKind,
    PointerType,
    SliceType,
    StructType,
    Type,
)
from ottergen.synth import ir
from ottergen.synth.method import CONTEXT_VAR, SELECTOR_FN, param_locals
from ottergen.synth.path import SLOT_PATTERN
from ottergen.utils import safe_identifier

__all__ = ['BUILTIN_TYPES', 'SELECTOR_FN', 'PythonRenderer']

BUILTIN_TYPES = {
    'int': 'int',
    'int32': 'int',
    'int64': 'int',
    'integer': 'int',
    'float64': 'float',
    'float': 'float',
    'double': 'float',
    'number': 'float',
    'bool': 'bool',
    'boolean': 'bool',
    'string': 'str',
    'str': 'str',
    'bytes': 'bytes',
    'error': 'Exception',
}

_ZERO_VALUES = {'int': 0, 'float': 0.0, 'bool': False, 'str': '', 'bytes': b''}


class PythonRenderer:
    """Renders methods and their IR bodies into ``ast.FunctionDef`` nodes.

    Every named, non-builtin type the rendered code refers to is recorded in
    ``used_names`` so the caller can import it. Standard library names the
    rendered code calls are recorded in ``imports``, keyed by module.

    Example:
        >>> renderer = PythonRenderer()
        >>> fn = renderer.render_method(method, synthesize_method(method))
        >>> print(ast.unparse(fn))
    """

    def __init__(self):
        self.used_names: set[str] = set()
        self.imports: dict[str, set[str]] = {}

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def annotation(self, typ: Type) -> ast.expr:
        """Build the annotation for a model type."""
        if isinstance(typ, IdentType):
            if typ.name in BUILTIN_TYPES:
                return _name(BUILTIN_TYPES[typ.name])
            self.used_names.add(typ.name)
            return _name(typ.name)
        if isinstance(typ, PointerType):
            return self._optional(self.annotation(typ.type))
        if isinstance(typ, SliceType):
            return _subscript('list', self.annotation(typ.type))
        if isinstance(typ, IterType):
            inner = typ.type.type if isinstance(typ.type, PointerType) else typ.type
            return self.annotation(inner)
        if isinstance(typ, StructType):
            return _name('dict')
        raise ValueError(f'unknown type kind: {typ.kind}')

    def _optional(self, inner: ast.expr) -> ast.expr:
        return _union_expr([inner, ast.Constant(value=None)])

    def _returns(self, method: Method) -> ast.expr:
        if method.returns and isinstance(method.returns[0], IterType):
            return self.annotation(method.returns[0])

        error = self._optional(_name('Exception'))
        if not method.returns:
            return error

        ret = method.returns[0]
        result = self.annotation(ret)
        if not isinstance(ret, PointerType):
            result = self._optional(result)
        return _subscript('tuple', _tuple([result, error]))

    # -------------------------------------------------------------------------
    # Methods
    # -------------------------------------------------------------------------

    def render_method(self, method: Method, body: list[ir.Stmt]) -> ast.FunctionDef:
        """Render a method signature with its synthesized body."""
        names = param_locals(method)
        args = [_argument(method.receiver.id), _argument(CONTEXT_VAR)]
        for param in method.params:
            args.append(_argument(names[param.name], self.annotation(param.type)))

        defaults = []
        if method.params and method.params[-1].kind == ParamKind.OPTS:
            defaults.append(ast.Constant(value=None))

        stmts: list[ast.stmt] = []
        if method.comment:
            stmts.append(ast.Expr(value=ast.Constant(value=method.comment.strip())))
        stmts.extend(self.render_body(body))

        return _func(
            name=method.name,
            args=args,
            body=stmts,
            returns=self._returns(method),
            defaults=defaults,
        )

    def render_body(self, body: 'list[ir.Stmt] | tuple[ir.Stmt, ...]') -> list[ast.stmt]:
        stmts: list[ast.stmt] = []
        for stmt in body:
            stmts.extend(self.statement(stmt))
        return stmts

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def statement(self, stmt: ir.Stmt) -> list[ast.stmt]:
        if isinstance(stmt, ir.Assign):
            return [_assign(self.expr(stmt.target), self.expr(stmt.value))]

        if isinstance(stmt, ir.DeclareVar):
            return [
                ast.AnnAssign(
                    target=ast.Name(id=stmt.name, ctx=ast.Store()),
                    annotation=self.annotation(stmt.type),
                    value=None,
                    simple=1,
                )
            ]

        if isinstance(stmt, ir.MarshalText):
            call = _call(_attr(self.expr(stmt.value), 'marshal_text'))
            target = _tuple([_name(safe_identifier(stmt.target)), self.expr(stmt.error)])
            return [_assign(target, call)]

        if isinstance(stmt, ir.ReturnIfError):
            values = [self.expr(v) for v in stmt.values]
            return [_if_not_none(self.expr(stmt.error), [_return(values)])]

        if isinstance(stmt, ir.DeclareQuery):
            return [
                ast.AnnAssign(
                    target=ast.Name(id=stmt.name, ctx=ast.Store()),
                    annotation=self._optional(self._query_annotation()),
                    value=ast.Constant(value=None),
                    simple=1,
                )
            ]

        if isinstance(stmt, ir.InitQuery):
            return [_assign(_name(stmt.name), ast.Dict(keys=[], values=[]))]

        if isinstance(stmt, ir.QuerySet):
            target = _subscript(stmt.query, ast.Constant(value=stmt.key))
            value = ast.List(elts=[self.expr(stmt.value)], ctx=ast.Load())
            return [_assign(target, value)]

        if isinstance(stmt, ir.QueryAdd):
            values = _call(
                _attr(stmt.query, 'setdefault'),
                [ast.Constant(value=stmt.key), ast.List(elts=[], ctx=ast.Load())],
            )
            append = _call(_attr(values, 'append'), [self.expr(stmt.value)])
            return [ast.Expr(value=append)]

        if isinstance(stmt, ir.ForEach):
            return [
                ast.For(
                    target=ast.Name(id=safe_identifier(stmt.item), ctx=ast.Store()),
                    iter=self.expr(stmt.iterable),
                    body=self.render_body(stmt.body) or [ast.Pass()],
                    orelse=[],
                )
            ]

        if isinstance(stmt, ir.IfNotNil):
            return [_if_not_none(self.expr(stmt.value), self.render_body(stmt.body))]

        if isinstance(stmt, ir.NewRequest):
            call = _call(
                _attr(self.expr(stmt.backend), 'new_request'),
                [
                    ast.Constant(value=stmt.method),
                    self.expr(stmt.path),
                    self.expr(stmt.query),
                    self.expr(stmt.body),
                ],
            )
            return [_assign(_tuple([_name(stmt.request), self.expr(stmt.error)]), call)]

        if isinstance(stmt, ir.SetHeader):
            target = _subscript(
                _attr(stmt.request, 'headers'), ast.Constant(value=stmt.key)
            )
            return [_assign(target, self.expr(stmt.value))]

        if isinstance(stmt, ir.Dispatch):
            return self._dispatch(stmt)

        if isinstance(stmt, ir.Return):
            return [_return([self.expr(v) for v in stmt.values])]

        raise ValueError(f'unknown statement: {type(stmt).__name__}')

    def _query_annotation(self) -> ast.expr:
        return _subscript(
            'dict', _tuple([_name('str'), _subscript('list', _name('str'))])
        )

    def _dispatch(self, stmt: ir.Dispatch) -> list[ast.stmt]:
        stmts: list[ast.stmt] = []
        selector: ast.expr = ast.Constant(value=None)
        if stmt.selector is not None:
            stmts.append(self.selector(stmt.selector))
            selector = _name(SELECTOR_FN)

        if isinstance(stmt.target, ir.Nil):
            target: ast.expr = _name('_')
        else:
            target = self.expr(stmt.target)

        result_type: ast.expr = ast.Constant(value=None)
        if stmt.result_type is not None:
            result_type = self.annotation(stmt.result_type)

        call = _call(
            _attr(self.expr(stmt.backend), 'do'),
            [_name(stmt.context), _name(stmt.request), result_type, selector],
        )
        stmts.append(_assign(_tuple([target, self.expr(stmt.error)]), call))
        return stmts

    # -------------------------------------------------------------------------
    # Error selection
    # -------------------------------------------------------------------------

    def selector(self, selector: ir.ErrorSelector) -> ast.FunctionDef:
        """Render an error selector as a nested ``select_error(code)`` function.

        One case renders as an ``if``, several as a ``match`` on the code.
        """
        fallback = _return([self._error_or_none(selector.default)])
        body: list[ast.stmt]

        if len(selector.cases) == 0:
            body = [fallback]
        elif len(selector.cases) == 1:
            case = selector.cases[0]
            body = [
                ast.If(
                    test=self._code_test(case.codes),
                    body=[_return([self.error(case.error)])],
                    orelse=[],
                ),
                fallback,
            ]
        else:
            match_cases = [
                ast.match_case(
                    pattern=self._code_pattern(case.codes),
                    guard=None,
                    body=[_return([self.error(case.error)])],
                )
                for case in selector.cases
            ]
            match_cases.append(
                ast.match_case(
                    pattern=ast.MatchAs(pattern=None, name=None),
                    guard=None,
                    body=[fallback],
                )
            )
            body = [ast.Match(subject=_name('code'), cases=match_cases)]

        return _func(
            name=SELECTOR_FN,
            args=[_argument('code', _name('int'))],
            body=body,
            returns=self._optional(_name('Exception')),
        )

    def _code_test(self, codes: tuple[int, ...]) -> ast.expr:
        if len(codes) == 1:
            return ast.Compare(
                left=_name('code'), ops=[ast.Eq()], comparators=[ast.Constant(codes[0])]
            )
        return ast.Compare(
            left=_name('code'),
            ops=[ast.In()],
            comparators=[_tuple([ast.Constant(value=c) for c in codes])],
        )

    def _code_pattern(self, codes: tuple[int, ...]) -> ast.pattern:
        patterns = [ast.MatchValue(value=ast.Constant(value=c)) for c in codes]
        if len(patterns) == 1:
            return patterns[0]
        return ast.MatchOr(patterns=patterns)

    def _error_or_none(self, error: ErrorConstructor | None) -> ast.expr:
        if error is None:
            return ast.Constant(value=None)
        return self.error(error)

    def error(self, error: ErrorConstructor) -> ast.Call:
        self.used_names.add(error.type)
        return _call(
            _name(error.type),
            keywords=[
                ast.keyword(arg=key, value=ast.Constant(value=value))
                for key, value in error.arguments
            ],
        )

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def expr(self, expr: ir.Expr) -> ast.expr:
        if isinstance(expr, ir.Name):
            return _name(safe_identifier(expr.id))

        if isinstance(expr, ir.Attr):
            return _attr(self.expr(expr.value), safe_identifier(expr.attr))

        if isinstance(expr, ir.Lit):
            return ast.Constant(value=expr.value)

        if isinstance(expr, ir.Nil):
            return ast.Constant(value=None)

        if isinstance(expr, ir.Zero):
            return ast.Constant(value=self._zero(expr.type))

        # References and dereferences are implicit in Python
        if isinstance(expr, (ir.AddressOf, ir.Deref)):
            return self.expr(expr.value)

        if isinstance(expr, ir.Stringify):
            return self._stringify(expr)

        if isinstance(expr, ir.BytesToString):
            return _call(_attr(self.expr(expr.value), 'decode'))

        if isinstance(expr, ir.FormatPath):
            return self._format_path(expr)

        if isinstance(expr, ir.IterState):
            inner = expr.type.type if isinstance(expr.type, PointerType) else expr.type
            return _call(
                self.annotation(inner),
                keywords=[
                    ast.keyword(arg='i', value=ast.Constant(value=expr.cursor)),
                    ast.keyword(arg='first', value=ast.Constant(value=expr.first)),
                ],
            )

        raise ValueError(f'unknown expression: {type(expr).__name__}')

    def _zero(self, typ: Type):
        if isinstance(typ, IdentType):
            return _ZERO_VALUES.get(BUILTIN_TYPES.get(typ.name, ''))
        return None

    def _stringify(self, expr: ir.Stringify) -> ast.expr:
        value = self.expr(expr.value)
        if expr.formatter == ir.Formatter.INT:
            return _call(_name('str'), [value])
        if expr.formatter == ir.Formatter.FLOAT:
            # Shortest round-tripping digits in fixed notation, no exponent
            self.imports.setdefault('decimal', set()).add('Decimal')
            decimal = _call(_name('Decimal'), [_call(_name('repr'), [value])])
            return _call(
                _name('format'),
                [_call(_attr(decimal, 'normalize')), ast.Constant(value='f')],
            )
        if expr.formatter == ir.Formatter.BOOL:
            return ast.IfExp(
                test=value,
                body=ast.Constant(value='true'),
                orelse=ast.Constant(value='false'),
            )
        raise ValueError(f'unknown formatter: {expr.formatter}')

    def _format_path(self, expr: ir.FormatPath) -> ast.expr:
        parts = SLOT_PATTERN.split(expr.template)
        values: list[ast.expr] = []
        args = iter(expr.args)

        for i, part in enumerate(parts):
            if i % 2 == 0:
                if part:
                    values.append(ast.Constant(value=part))
            else:
                values.append(
                    ast.FormattedValue(value=self.expr(next(args)), conversion=-1)
                )

        if not any(isinstance(v, ast.FormattedValue) for v in values):
            return ast.Constant(value=expr.template)
        return ast.JoinedStr(values=values)

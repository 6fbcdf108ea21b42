"""
PromQL syntax validation.

A recursive-descent parser for the Prometheus query language. It builds
a small AST and applies the same static checks the Prometheus parser
performs (operand types, function signatures, aggregation parameters,
selector matchers), so an expression accepted here is one the ruler
will accept.

Usage:
    from alertsync.validation.promql import parse_expr, PromQLSyntaxError

    try:
        parse_expr('rate(http_requests_total{job="api"}[5m]) > 10')
    except PromQLSyntaxError as exc:
        print(exc.message, exc.pos)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from alertsync.rules.duration import SECOND, parse_nanoseconds
from alertsync.validation.lexer import LexError, Token, TokenKind, tokenize


class ValueType(str, Enum):
    SCALAR = "scalar"
    VECTOR = "instant vector"
    MATRIX = "range vector"
    STRING = "string"


class PromQLSyntaxError(ValueError):
    """Raised when an expression is not valid PromQL."""

    def __init__(self, message: str, pos: int):
        super().__init__(f"parse error at char {pos + 1}: {message}")
        self.message = message
        self.pos = pos


# --- AST -------------------------------------------------------------------


@dataclass
class Node:
    pos: int

    @property
    def type(self) -> ValueType:
        raise NotImplementedError


@dataclass
class NumberLiteral(Node):
    value: float

    @property
    def type(self) -> ValueType:
        return ValueType.SCALAR


@dataclass
class StringLiteral(Node):
    value: str

    @property
    def type(self) -> ValueType:
        return ValueType.STRING


@dataclass
class LabelMatcher:
    name: str
    op: str
    value: str

    def matches_empty(self) -> bool:
        """Return True if this matcher would select series without the label."""
        if self.op == "=":
            return self.value == ""
        if self.op == "!=":
            return self.value != ""
        matched = re.fullmatch(self.value, "") is not None
        return matched if self.op == "=~" else not matched


@dataclass
class VectorSelector(Node):
    name: Optional[str]
    matchers: List[LabelMatcher] = field(default_factory=list)
    offset: Optional[int] = None  # nanoseconds
    at: Optional[str] = None

    @property
    def type(self) -> ValueType:
        return ValueType.VECTOR


@dataclass
class MatrixSelector(Node):
    vector: VectorSelector
    range: int  # nanoseconds

    @property
    def type(self) -> ValueType:
        return ValueType.MATRIX


@dataclass
class SubqueryExpr(Node):
    expr: Node
    range: int
    step: Optional[int] = None
    offset: Optional[int] = None
    at: Optional[str] = None

    @property
    def type(self) -> ValueType:
        return ValueType.MATRIX


@dataclass
class ParenExpr(Node):
    expr: Node

    @property
    def type(self) -> ValueType:
        return self.expr.type


@dataclass
class UnaryExpr(Node):
    op: str
    expr: Node

    @property
    def type(self) -> ValueType:
        return self.expr.type


@dataclass
class VectorMatching:
    on: bool
    labels: List[str]
    card: str = "one-to-one"
    include: List[str] = field(default_factory=list)


@dataclass
class BinaryExpr(Node):
    op: str
    lhs: Node
    rhs: Node
    return_bool: bool = False
    matching: Optional[VectorMatching] = None

    @property
    def type(self) -> ValueType:
        if self.lhs.type is ValueType.SCALAR and self.rhs.type is ValueType.SCALAR:
            return ValueType.SCALAR
        return ValueType.VECTOR


@dataclass
class Call(Node):
    func: str
    args: List[Node]

    @property
    def type(self) -> ValueType:
        return FUNCTIONS[self.func].return_type


@dataclass
class AggregateExpr(Node):
    op: str
    expr: Node
    param: Optional[Node] = None
    grouping: List[str] = field(default_factory=list)
    without: bool = False

    @property
    def type(self) -> ValueType:
        return ValueType.VECTOR


# --- Language tables -------------------------------------------------------


@dataclass(frozen=True)
class Function:
    name: str
    arg_types: Tuple[ValueType, ...]
    return_type: ValueType
    # 0: exact arity; n > 0: the last argument is optional and may repeat
    # up to n times; -1: the last argument repeats without limit.
    variadic: int = 0


_S = ValueType.SCALAR
_V = ValueType.VECTOR
_M = ValueType.MATRIX
_STR = ValueType.STRING


def _functions(*specs: Function) -> Dict[str, Function]:
    return {spec.name: spec for spec in specs}


FUNCTIONS: Dict[str, Function] = _functions(
    Function("abs", (_V,), _V),
    Function("absent", (_V,), _V),
    Function("absent_over_time", (_M,), _V),
    Function("acos", (_V,), _V),
    Function("acosh", (_V,), _V),
    Function("asin", (_V,), _V),
    Function("asinh", (_V,), _V),
    Function("atan", (_V,), _V),
    Function("atanh", (_V,), _V),
    Function("avg_over_time", (_M,), _V),
    Function("ceil", (_V,), _V),
    Function("changes", (_M,), _V),
    Function("clamp", (_V, _S, _S), _V),
    Function("clamp_max", (_V, _S), _V),
    Function("clamp_min", (_V, _S), _V),
    Function("cos", (_V,), _V),
    Function("cosh", (_V,), _V),
    Function("count_over_time", (_M,), _V),
    Function("days_in_month", (_V,), _V, variadic=1),
    Function("day_of_month", (_V,), _V, variadic=1),
    Function("day_of_week", (_V,), _V, variadic=1),
    Function("day_of_year", (_V,), _V, variadic=1),
    Function("deg", (_V,), _V),
    Function("delta", (_M,), _V),
    Function("deriv", (_M,), _V),
    Function("double_exponential_smoothing", (_M, _S, _S), _V),
    Function("exp", (_V,), _V),
    Function("floor", (_V,), _V),
    Function("histogram_avg", (_V,), _V),
    Function("histogram_count", (_V,), _V),
    Function("histogram_fraction", (_S, _S, _V), _V),
    Function("histogram_quantile", (_S, _V), _V),
    Function("histogram_stddev", (_V,), _V),
    Function("histogram_stdvar", (_V,), _V),
    Function("histogram_sum", (_V,), _V),
    Function("holt_winters", (_M, _S, _S), _V),
    Function("hour", (_V,), _V, variadic=1),
    Function("idelta", (_M,), _V),
    Function("increase", (_M,), _V),
    Function("info", (_V, _V), _V, variadic=1),
    Function("irate", (_M,), _V),
    Function("label_join", (_V, _STR, _STR, _STR), _V, variadic=-1),
    Function("label_replace", (_V, _STR, _STR, _STR, _STR), _V),
    Function("last_over_time", (_M,), _V),
    Function("ln", (_V,), _V),
    Function("log10", (_V,), _V),
    Function("log2", (_V,), _V),
    Function("mad_over_time", (_M,), _V),
    Function("max_over_time", (_M,), _V),
    Function("min_over_time", (_M,), _V),
    Function("minute", (_V,), _V, variadic=1),
    Function("month", (_V,), _V, variadic=1),
    Function("pi", (), _S),
    Function("predict_linear", (_M, _S), _V),
    Function("present_over_time", (_M,), _V),
    Function("quantile_over_time", (_S, _M), _V),
    Function("rad", (_V,), _V),
    Function("rate", (_M,), _V),
    Function("resets", (_M,), _V),
    Function("round", (_V, _S), _V, variadic=1),
    Function("scalar", (_V,), _S),
    Function("sgn", (_V,), _V),
    Function("sin", (_V,), _V),
    Function("sinh", (_V,), _V),
    Function("sort", (_V,), _V),
    Function("sort_by_label", (_V, _STR), _V, variadic=-1),
    Function("sort_by_label_desc", (_V, _STR), _V, variadic=-1),
    Function("sort_desc", (_V,), _V),
    Function("sqrt", (_V,), _V),
    Function("stddev_over_time", (_M,), _V),
    Function("stdvar_over_time", (_M,), _V),
    Function("sum_over_time", (_M,), _V),
    Function("tan", (_V,), _V),
    Function("tanh", (_V,), _V),
    Function("time", (), _S),
    Function("timestamp", (_V,), _V),
    Function("vector", (_S,), _V),
    Function("year", (_V,), _V, variadic=1),
)

AGGREGATORS = {
    "avg",
    "bottomk",
    "count",
    "count_values",
    "group",
    "limit_ratio",
    "limitk",
    "max",
    "min",
    "quantile",
    "stddev",
    "stdvar",
    "sum",
    "topk",
}

# Aggregators that take a leading parameter, and the parameter's type.
AGGREGATOR_PARAMS = {
    "bottomk": ValueType.SCALAR,
    "count_values": ValueType.STRING,
    "limit_ratio": ValueType.SCALAR,
    "limitk": ValueType.SCALAR,
    "quantile": ValueType.SCALAR,
    "topk": ValueType.SCALAR,
}

# Binary operator precedence, higher binds tighter.
PRECEDENCE = {
    "or": 1,
    "and": 2,
    "unless": 2,
    "==": 3,
    "!=": 3,
    "<=": 3,
    "<": 3,
    ">=": 3,
    ">": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "atan2": 5,
    "^": 6,
}

COMPARISON_OPERATORS = {"==", "!=", "<=", "<", ">=", ">"}
SET_OPERATORS = {"and", "or", "unless"}
KEYWORD_OPERATORS = {"and", "or", "unless", "atan2"}
MATCH_OPERATORS = {"=", "!=", "=~", "!~"}

_LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*\Z")


# --- Parser ----------------------------------------------------------------


class _Parser:
    def __init__(self, text: str):
        self.text = text
        try:
            self.tokens = tokenize(text)
        except LexError as exc:
            raise PromQLSyntaxError(exc.message, exc.pos) from exc
        self.index = 0

    # Token helpers

    def peek(self, ahead: int = 0) -> Token:
        index = min(self.index + ahead, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind is not TokenKind.EOF:
            self.index += 1
        return token

    def expect(self, kind: TokenKind, context: str) -> Token:
        token = self.peek()
        if token.kind is not kind:
            raise PromQLSyntaxError(
                f"unexpected {token.describe()} in {context}, expected {kind.value!r}", token.pos
            )
        return self.advance()

    def at_keyword(self, *words: str) -> bool:
        token = self.peek()
        return token.kind is TokenKind.IDENTIFIER and token.value.lower() in words

    # Grammar

    def parse(self) -> Node:
        if self.peek().kind is TokenKind.EOF:
            raise PromQLSyntaxError("no expression found in input", 0)
        node = self.expression(0)
        token = self.peek()
        if token.kind is not TokenKind.EOF:
            raise PromQLSyntaxError(f"unexpected {token.describe()}", token.pos)
        return node

    def binary_operator(self) -> Optional[str]:
        token = self.peek()
        if token.kind is TokenKind.OPERATOR and token.value in PRECEDENCE:
            return token.value
        if token.kind is TokenKind.IDENTIFIER and token.value.lower() in KEYWORD_OPERATORS:
            return token.value.lower()
        return None

    def expression(self, min_precedence: int) -> Node:
        lhs = self.unary()
        while True:
            op = self.binary_operator()
            if op is None or PRECEDENCE[op] < min_precedence:
                return lhs
            op_token = self.advance()
            return_bool, matching = self.binary_modifiers(op, op_token)
            # "^" is right associative, everything else left associative.
            next_precedence = PRECEDENCE[op] if op == "^" else PRECEDENCE[op] + 1
            rhs = self.expression(next_precedence)
            lhs = BinaryExpr(
                pos=op_token.pos,
                op=op,
                lhs=lhs,
                rhs=rhs,
                return_bool=return_bool,
                matching=matching,
            )
            _check_binary(lhs)

    def binary_modifiers(self, op: str, op_token: Token) -> Tuple[bool, Optional[VectorMatching]]:
        return_bool = False
        matching: Optional[VectorMatching] = None

        if self.at_keyword("bool"):
            token = self.advance()
            if op not in COMPARISON_OPERATORS:
                raise PromQLSyntaxError(
                    "bool modifier can only be used on comparison operators", token.pos
                )
            return_bool = True

        if self.at_keyword("on", "ignoring"):
            on = self.advance().value.lower() == "on"
            matching = VectorMatching(on=on, labels=self.grouping_labels())

            if self.at_keyword("group_left", "group_right"):
                token = self.advance()
                if op in SET_OPERATORS:
                    raise PromQLSyntaxError(f"no grouping allowed for {op!r} operation", token.pos)
                matching.card = (
                    "many-to-one" if token.value.lower() == "group_left" else "one-to-many"
                )
                if self.peek().kind is TokenKind.LEFT_PAREN:
                    matching.include = self.grouping_labels()
        elif self.at_keyword("group_left", "group_right"):
            token = self.peek()
            raise PromQLSyntaxError(
                f"{token.value} must follow an on or ignoring clause", token.pos
            )

        if matching is None and op in SET_OPERATORS:
            matching = VectorMatching(on=False, labels=[], card="many-to-many")
        elif matching is not None and op in SET_OPERATORS:
            matching.card = "many-to-many"

        return return_bool, matching

    def unary(self) -> Node:
        token = self.peek()
        if token.kind is TokenKind.OPERATOR and token.value in ("+", "-"):
            self.advance()
            operand = self.expression(PRECEDENCE["^"])
            if isinstance(operand, NumberLiteral):
                value = -operand.value if token.value == "-" else operand.value
                return NumberLiteral(pos=token.pos, value=value)
            if operand.type not in (ValueType.SCALAR, ValueType.VECTOR):
                raise PromQLSyntaxError(
                    "unary expression only allowed on expressions of type scalar or instant "
                    f"vector, got {operand.type.value}",
                    token.pos,
                )
            return UnaryExpr(pos=token.pos, op=token.value, expr=operand)
        return self.postfix(self.primary())

    def postfix(self, node: Node) -> Node:
        while True:
            token = self.peek()
            if token.kind is TokenKind.LEFT_BRACKET:
                node = self.range_or_subquery(node)
            elif self.at_keyword("offset"):
                node = self.offset(node)
            elif token.kind is TokenKind.AT:
                node = self.at_modifier(node)
            else:
                return node

    def primary(self) -> Node:
        token = self.peek()

        if token.kind is TokenKind.NUMBER:
            self.advance()
            return NumberLiteral(pos=token.pos, value=_parse_number(token))

        if token.kind is TokenKind.DURATION:
            self.advance()
            return NumberLiteral(pos=token.pos, value=_duration(token) / SECOND)

        if token.kind is TokenKind.STRING:
            self.advance()
            return StringLiteral(pos=token.pos, value=token.value)

        if token.kind is TokenKind.LEFT_PAREN:
            self.advance()
            inner = self.expression(0)
            self.expect(TokenKind.RIGHT_PAREN, "parenthesized expression")
            return ParenExpr(pos=token.pos, expr=inner)

        if token.kind is TokenKind.LEFT_BRACE:
            return self.vector_selector(None, token.pos)

        if token.kind is TokenKind.IDENTIFIER:
            word = token.value
            lowered = word.lower()
            following = self.peek(1)

            if lowered in ("inf", "nan"):
                self.advance()
                return NumberLiteral(pos=token.pos, value=float(lowered))

            if lowered in AGGREGATORS and (
                following.kind is TokenKind.LEFT_PAREN
                or (
                    following.kind is TokenKind.IDENTIFIER
                    and following.value.lower() in ("by", "without")
                )
            ):
                return self.aggregation()

            if following.kind is TokenKind.LEFT_PAREN:
                return self.call()

            self.advance()
            return self.vector_selector(word, token.pos)

        raise PromQLSyntaxError(f"unexpected {token.describe()}", token.pos)

    def vector_selector(self, name: Optional[str], pos: int) -> VectorSelector:
        matchers: List[LabelMatcher] = []
        if self.peek().kind is TokenKind.LEFT_BRACE:
            name, matchers = self.label_matchers(name)

        if name is not None and any(m.name == "__name__" for m in matchers):
            raise PromQLSyntaxError("metric name must not be set twice", pos)

        if name is None and all(m.matches_empty() for m in matchers):
            raise PromQLSyntaxError(
                "vector selector must contain at least one non-empty matcher", pos
            )

        return VectorSelector(pos=pos, name=name, matchers=matchers)

    def label_matchers(self, name: Optional[str]) -> Tuple[Optional[str], List[LabelMatcher]]:
        self.expect(TokenKind.LEFT_BRACE, "label matching")
        matchers: List[LabelMatcher] = []

        while self.peek().kind is not TokenKind.RIGHT_BRACE:
            token = self.advance()
            if token.kind is TokenKind.IDENTIFIER:
                if not _LABEL_NAME_RE.match(token.value):
                    raise PromQLSyntaxError(f"invalid label name {token.value!r}", token.pos)
                label = token.value
            elif token.kind is TokenKind.STRING:
                label = token.value
                # A lone quoted string names the metric.
                if self.peek().kind in (TokenKind.COMMA, TokenKind.RIGHT_BRACE):
                    if name is not None:
                        raise PromQLSyntaxError("metric name must not be set twice", token.pos)
                    name = label
                    self._matcher_separator()
                    continue
            else:
                raise PromQLSyntaxError(
                    f"unexpected {token.describe()} in label matching, expected label name",
                    token.pos,
                )

            op_token = self.peek()
            if op_token.kind is not TokenKind.OPERATOR or op_token.value not in MATCH_OPERATORS:
                raise PromQLSyntaxError(
                    f"unexpected {op_token.describe()} in label matching, "
                    "expected label matching operator",
                    op_token.pos,
                )
            self.advance()
            value = self.expect(TokenKind.STRING, "label matching")

            if op_token.value in ("=~", "!~"):
                try:
                    re.compile(value.value)
                except re.error as exc:
                    raise PromQLSyntaxError(
                        f"invalid regular expression {value.value!r}: {exc}", value.pos
                    ) from exc

            matchers.append(LabelMatcher(name=label, op=op_token.value, value=value.value))
            self._matcher_separator()

        self.advance()
        return name, matchers

    def _matcher_separator(self) -> None:
        token = self.peek()
        if token.kind is TokenKind.COMMA:
            self.advance()
        elif token.kind is not TokenKind.RIGHT_BRACE:
            raise PromQLSyntaxError(
                f"unexpected {token.describe()} in label matching, expected ',' or '}}'",
                token.pos,
            )

    def grouping_labels(self) -> List[str]:
        self.expect(TokenKind.LEFT_PAREN, "grouping")
        labels: List[str] = []
        while self.peek().kind is not TokenKind.RIGHT_PAREN:
            token = self.advance()
            if token.kind is TokenKind.STRING:
                labels.append(token.value)
            elif token.kind is TokenKind.IDENTIFIER and _LABEL_NAME_RE.match(token.value):
                labels.append(token.value)
            else:
                raise PromQLSyntaxError(
                    f"unexpected {token.describe()} in grouping opts, expected label", token.pos
                )
            if self.peek().kind is TokenKind.COMMA:
                self.advance()
            elif self.peek().kind is not TokenKind.RIGHT_PAREN:
                token = self.peek()
                raise PromQLSyntaxError(
                    f"unexpected {token.describe()} in grouping opts, expected ',' or ')'",
                    token.pos,
                )
        self.advance()
        return labels

    def aggregation(self) -> AggregateExpr:
        op_token = self.advance()
        op = op_token.value.lower()
        grouping: List[str] = []
        without = False
        modifier_seen = False

        if self.at_keyword("by", "without"):
            without = self.advance().value.lower() == "without"
            grouping = self.grouping_labels()
            modifier_seen = True

        args = self.call_arguments("aggregation")

        if not modifier_seen and self.at_keyword("by", "without"):
            without = self.advance().value.lower() == "without"
            grouping = self.grouping_labels()

        expected = 2 if op in AGGREGATOR_PARAMS else 1
        if len(args) != expected:
            raise PromQLSyntaxError(
                "wrong number of arguments for aggregate expression provided, "
                f"expected {expected}, got {len(args)}",
                op_token.pos,
            )

        param: Optional[Node] = None
        if op in AGGREGATOR_PARAMS:
            param, expr = args
            _expect_type(param, AGGREGATOR_PARAMS[op], f"aggregation parameter of {op!r}")
        else:
            (expr,) = args
        _expect_type(expr, ValueType.VECTOR, "aggregation expression")

        return AggregateExpr(
            pos=op_token.pos,
            op=op,
            expr=expr,
            param=param,
            grouping=grouping,
            without=without,
        )

    def call(self) -> Call:
        name_token = self.advance()
        function = FUNCTIONS.get(name_token.value)
        if function is None:
            raise PromQLSyntaxError(
                f"unknown function with name {name_token.value!r}", name_token.pos
            )

        args = self.call_arguments(f"call to function {function.name!r}")
        _check_call(function, args, name_token.pos)
        return Call(pos=name_token.pos, func=function.name, args=args)

    def call_arguments(self, context: str) -> List[Node]:
        self.expect(TokenKind.LEFT_PAREN, context)
        args: List[Node] = []
        if self.peek().kind is TokenKind.RIGHT_PAREN:
            self.advance()
            return args

        while True:
            args.append(self.expression(0))
            token = self.peek()
            if token.kind is TokenKind.COMMA:
                self.advance()
                continue
            if token.kind is TokenKind.RIGHT_PAREN:
                self.advance()
                return args
            raise PromQLSyntaxError(
                f"unexpected {token.describe()} in {context}, expected ',' or ')'", token.pos
            )

    def duration_value(self, context: str) -> int:
        token = self.advance()
        if token.kind is TokenKind.DURATION:
            return _duration(token)
        if token.kind is TokenKind.NUMBER:
            return int(_parse_number(token) * SECOND)
        raise PromQLSyntaxError(
            f"unexpected {token.describe()} in {context}, expected duration", token.pos
        )

    def range_or_subquery(self, node: Node) -> Node:
        bracket = self.advance()
        range_ns = self.duration_value("range")

        if self.peek().kind is TokenKind.COLON:
            self.advance()
            step: Optional[int] = None
            if self.peek().kind is not TokenKind.RIGHT_BRACKET:
                step = self.duration_value("subquery step")
            self.expect(TokenKind.RIGHT_BRACKET, "subquery")
            if node.type is not ValueType.VECTOR:
                raise PromQLSyntaxError(
                    f"subquery is only allowed on instant vector, got {node.type.value}",
                    bracket.pos,
                )
            return SubqueryExpr(pos=node.pos, expr=node, range=range_ns, step=step)

        self.expect(TokenKind.RIGHT_BRACKET, "range")
        if not isinstance(node, VectorSelector):
            raise PromQLSyntaxError(
                "ranges only allowed for vector selectors", bracket.pos
            )
        if node.offset is not None or node.at is not None:
            raise PromQLSyntaxError(
                "no offset or @ modifiers allowed before range", bracket.pos
            )
        return MatrixSelector(pos=node.pos, vector=node, range=range_ns)

    def offset(self, node: Node) -> Node:
        keyword = self.advance()
        sign = 1
        token = self.peek()
        if token.kind is TokenKind.OPERATOR and token.value in ("+", "-"):
            sign = -1 if token.value == "-" else 1
            self.advance()
        value = sign * self.duration_value("offset")

        target = self._modifier_target(node, "offset", keyword.pos)
        if target.offset is not None:
            raise PromQLSyntaxError("offset may not be set multiple times", keyword.pos)
        target.offset = value
        return node

    def at_modifier(self, node: Node) -> Node:
        at_token = self.advance()
        token = self.peek()

        if token.kind is TokenKind.IDENTIFIER and token.value.lower() in ("start", "end"):
            self.advance()
            self.expect(TokenKind.LEFT_PAREN, "@ modifier")
            self.expect(TokenKind.RIGHT_PAREN, "@ modifier")
            value = f"{token.value.lower()}()"
        else:
            sign = ""
            if token.kind is TokenKind.OPERATOR and token.value in ("+", "-"):
                sign = "-" if token.value == "-" else ""
                self.advance()
            number = self.advance()
            if number.kind is not TokenKind.NUMBER:
                raise PromQLSyntaxError(
                    f"unexpected {number.describe()} in @ modifier, expected timestamp",
                    number.pos,
                )
            value = sign + number.value

        target = self._modifier_target(node, "@", at_token.pos)
        if target.at is not None:
            raise PromQLSyntaxError("@ <timestamp> may not be set multiple times", at_token.pos)
        target.at = value
        return node

    @staticmethod
    def _modifier_target(node: Node, modifier: str, pos: int):
        if isinstance(node, MatrixSelector):
            return node.vector
        if isinstance(node, (VectorSelector, SubqueryExpr)):
            return node
        raise PromQLSyntaxError(
            f"{modifier} modifier must be preceded by an instant vector selector "
            "or range vector selector or a subquery",
            pos,
        )


# --- Static checks ---------------------------------------------------------


def _parse_number(token: Token) -> float:
    if token.value[:2].lower() == "0x":
        return float(int(token.value, 16))
    return float(token.value)


def _duration(token: Token) -> int:
    try:
        return parse_nanoseconds(token.value)
    except ValueError as exc:
        raise PromQLSyntaxError(f"invalid duration {token.value!r}", token.pos) from exc


def _expect_type(node: Node, expected: ValueType, context: str) -> None:
    if node.type is not expected:
        raise PromQLSyntaxError(
            f"expected type {expected.value} in {context}, got {node.type.value}", node.pos
        )


def _check_call(function: Function, args: List[Node], pos: int) -> None:
    declared = len(function.arg_types)
    given = len(args)

    if function.variadic == 0:
        if given != declared:
            raise PromQLSyntaxError(
                f"expected {declared} argument(s) in call to {function.name!r}, got {given}", pos
            )
    else:
        minimum = declared - 1
        if given < minimum:
            raise PromQLSyntaxError(
                f"expected at least {minimum} argument(s) in call to {function.name!r}, "
                f"got {given}",
                pos,
            )
        maximum = minimum + function.variadic
        if function.variadic > 0 and given > maximum:
            raise PromQLSyntaxError(
                f"expected at most {maximum} argument(s) in call to {function.name!r}, "
                f"got {given}",
                pos,
            )

    for index, arg in enumerate(args):
        expected = function.arg_types[min(index, declared - 1)]
        _expect_type(arg, expected, f"call to function {function.name!r}")


def _check_binary(node: BinaryExpr) -> None:
    lhs_type, rhs_type = node.lhs.type, node.rhs.type
    allowed = (ValueType.SCALAR, ValueType.VECTOR)

    if lhs_type not in allowed or rhs_type not in allowed:
        raise PromQLSyntaxError(
            "binary expression must contain only scalar and instant vector types", node.pos
        )

    both_scalar = lhs_type is ValueType.SCALAR and rhs_type is ValueType.SCALAR
    if both_scalar and node.op in COMPARISON_OPERATORS and not node.return_bool:
        raise PromQLSyntaxError("comparisons between scalars must use BOOL modifier", node.pos)

    if node.op in SET_OPERATORS and ValueType.SCALAR in (lhs_type, rhs_type):
        raise PromQLSyntaxError(
            f"set operator {node.op!r} not allowed in binary scalar expression", node.pos
        )

    explicit_matching = node.matching is not None and (
        node.matching.on or node.matching.labels or node.matching.card != "many-to-many"
    )
    if explicit_matching and node.op not in SET_OPERATORS and ValueType.SCALAR in (
        lhs_type,
        rhs_type,
    ):
        raise PromQLSyntaxError(
            "vector matching only allowed between instant vectors", node.pos
        )


def parse_expr(text: str) -> Node:
    """Parse a PromQL expression and return its AST.

    Raises:
        PromQLSyntaxError: if the expression is not valid PromQL
    """
    return _Parser(text).parse()


def is_valid_expr(text: str) -> bool:
    """Return True if ``text`` parses as a PromQL expression."""
    try:
        parse_expr(text)
    except PromQLSyntaxError:
        return False
    return True

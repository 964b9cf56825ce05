# =============================================================================
# core/expressions.py  -  Restricted Expression Evaluation
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   json_filter and json_transform accept small expressions written by the
#   agent, e.g.
#
#       item.age > 18 and item.country == "NZ"
#       {**acc, item["id"]: item["name"]}
#       a.price - b.price
#
#   These are NEVER handed to eval().  The text is parsed with
#   ast.parse(mode="eval") and interpreted node by node.  Any node type,
#   name, function or method not listed below is rejected.
#
# WHAT IS ALLOWED:
#   - literals, list/tuple/dict displays (dicts support **unpacking)
#   - the names passed in by the operation (item, key, index, acc, a, b...)
#     plus true / false / null as JSON-style aliases
#   - item.field  (on an object this is item["field"]; a missing key is null)
#   - subscripts and slices, comparisons (in, not in, is, is not)
#   - and / or / not, + - * / // % **, conditional expressions
#   - the functions in _FUNCTIONS and the read-only methods in _METHODS
#
# RESOURCE LIMITS:
#   Every evaluated node costs one step; one CompiledExpression (one tool
#   call) gets step_limit steps in total.  Exponents and sequence
#   repetition are capped so one node can't allocate unbounded memory.
#
# ERRORS:
#   Everything (syntax, disallowed construct, runtime failure, step limit)
#   surfaces as ExpressionError.
# =============================================================================

import ast
import functools
import operator
from typing import Any, Callable, Iterable

from core.errors import ExpressionError
from core.sampler import json_type

DEFAULT_STEP_LIMIT = 1_000_000
MAX_SOURCE_LENGTH = 10_000
MAX_EXPONENT = 1000
MAX_REPEAT_LENGTH = 1_000_000

_CONSTANT_NAMES = {"true": True, "false": False, "null": None, "True": True, "False": False, "None": None}

_FUNCTIONS: dict[str, Callable] = {
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "abs": abs,
    "min": min,
    "max": max,
    "sum": sum,
    "round": round,
    "sorted": sorted,
    "any": any,
    "all": all,
    "keys": lambda obj: list(obj.keys()),
    "values": lambda obj: list(obj.values()),
    "typeof": json_type,
}

_STR_METHODS = (
    "lower", "upper", "title", "strip", "lstrip", "rstrip", "startswith",
    "endswith", "split", "replace", "find", "count", "isdigit", "isalpha", "join",
)

_METHODS: dict[type, dict[str, Callable]] = {
    str: {name: getattr(str, name) for name in _STR_METHODS},
    list: {"count": list.count, "index": list.index},
    dict: {
        "get": dict.get,
        "keys": lambda obj: list(obj.keys()),
        "values": lambda obj: list(obj.values()),
        "items": lambda obj: [[key, value] for key, value in obj.items()],
    },
}

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_COMPARE_OPS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

# Runtime failures of whitelisted operations, reported as ExpressionError
_RUNTIME_ERRORS = (
    TypeError, ValueError, KeyError, IndexError, ZeroDivisionError,
    OverflowError, AttributeError, RecursionError,
)


class _Interpreter:
    """Walks one parsed expression tree against a scope of named values."""

    def __init__(self, step_limit: int):
        self.step_limit = step_limit
        self.steps = 0

    def evaluate(self, node: ast.AST, scope: dict[str, Any]) -> Any:
        self.steps += 1
        if self.steps > self.step_limit:
            raise ExpressionError(
                f"Expression exceeded the limit of {self.step_limit} evaluation steps"
            )
        handler = getattr(self, f"_eval_{type(node).__name__}", None)
        if handler is None:
            raise ExpressionError(f"Unsupported syntax: {type(node).__name__}")
        return handler(node, scope)

    # --- leaves ---------------------------------------------------------------

    def _eval_Constant(self, node, scope):
        if not isinstance(node.value, (str, int, float, bool, type(None))):
            raise ExpressionError(f"Unsupported literal: {node.value!r}")
        return node.value

    def _eval_Name(self, node, scope):
        if node.id in scope:
            return scope[node.id]
        if node.id in _CONSTANT_NAMES:
            return _CONSTANT_NAMES[node.id]
        if node.id in _FUNCTIONS:
            return _FUNCTIONS[node.id]
        raise ExpressionError(f"Unknown name: {node.id}")

    # --- containers -----------------------------------------------------------

    def _eval_List(self, node, scope):
        return [self.evaluate(element, scope) for element in node.elts]

    _eval_Tuple = _eval_List

    def _eval_Dict(self, node, scope):
        result = {}
        for key_node, value_node in zip(node.keys, node.values):
            value = self.evaluate(value_node, scope)
            if key_node is None:
                # {**acc, ...}
                if not isinstance(value, dict):
                    raise ExpressionError("Only objects can be unpacked with **")
                result.update(value)
            else:
                result[self.evaluate(key_node, scope)] = value
        return result

    # --- access ---------------------------------------------------------------

    def _eval_Attribute(self, node, scope):
        if node.attr.startswith("_"):
            raise ExpressionError(f"Access to {node.attr!r} is not allowed")
        target = self.evaluate(node.value, scope)
        if isinstance(target, dict) and node.attr in target:
            return target[node.attr]
        for kind, methods in _METHODS.items():
            if isinstance(target, kind) and node.attr in methods:
                return functools.partial(methods[node.attr], target)
        if isinstance(target, dict):
            return None
        raise ExpressionError(f"{json_type(target)} has no attribute {node.attr!r}")

    def _eval_Subscript(self, node, scope):
        target = self.evaluate(node.value, scope)
        index = self.evaluate(node.slice, scope)
        return target[index]

    def _eval_Slice(self, node, scope):
        return slice(
            None if node.lower is None else self.evaluate(node.lower, scope),
            None if node.upper is None else self.evaluate(node.upper, scope),
            None if node.step is None else self.evaluate(node.step, scope),
        )

    def _eval_Call(self, node, scope):
        function = self.evaluate(node.func, scope)
        if not callable(function):
            raise ExpressionError("Only whitelisted functions and methods can be called")
        args = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise ExpressionError("*args is not supported")
            args.append(self.evaluate(arg, scope))
        kwargs = {}
        for keyword in node.keywords:
            if keyword.arg is None:
                raise ExpressionError("**kwargs is not supported")
            kwargs[keyword.arg] = self.evaluate(keyword.value, scope)
        return function(*args, **kwargs)

    # --- operators ------------------------------------------------------------

    def _eval_BoolOp(self, node, scope):
        is_and = isinstance(node.op, ast.And)
        result = None
        for value_node in node.values:
            result = self.evaluate(value_node, scope)
            if is_and and not result:
                return result
            if not is_and and result:
                return result
        return result

    def _eval_UnaryOp(self, node, scope):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return op(self.evaluate(node.operand, scope))

    def _eval_BinOp(self, node, scope):
        op = _BIN_OPS.get(type(node.op))
        if op is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        left = self.evaluate(node.left, scope)
        right = self.evaluate(node.right, scope)
        _check_operation_size(node.op, left, right)
        return op(left, right)

    def _eval_Compare(self, node, scope):
        left = self.evaluate(node.left, scope)
        for op_node, right_node in zip(node.ops, node.comparators):
            right = self.evaluate(right_node, scope)
            if not _COMPARE_OPS[type(op_node)](left, right):
                return False
            left = right
        return True

    def _eval_IfExp(self, node, scope):
        if self.evaluate(node.test, scope):
            return self.evaluate(node.body, scope)
        return self.evaluate(node.orelse, scope)


def _check_operation_size(op: ast.operator, left: Any, right: Any) -> None:
    if isinstance(op, ast.Pow) and isinstance(right, (int, float)) and abs(right) > MAX_EXPONENT:
        raise ExpressionError(f"Exponent {right} is larger than {MAX_EXPONENT}")
    if isinstance(op, ast.Mult):
        for sequence, count in ((left, right), (right, left)):
            if (
                isinstance(sequence, (str, list))
                and isinstance(count, int)
                and len(sequence) * count > MAX_REPEAT_LENGTH
            ):
                raise ExpressionError(
                    f"Repetition would build a sequence longer than {MAX_REPEAT_LENGTH}"
                )


class CompiledExpression:
    """A parsed expression that can be called with keyword arguments.

    Steps are counted across all calls, so one instance bounds the total
    work of one operation (e.g. a filter over 100k items).
    """

    def __init__(self, source: str, tree: ast.Expression, arg_names: Iterable[str], step_limit: int):
        self.source = source
        self.arg_names = tuple(arg_names)
        self._tree = tree
        self._interpreter = _Interpreter(step_limit)

    def __call__(self, **arguments: Any) -> Any:
        unknown = set(arguments) - set(self.arg_names)
        if unknown:
            raise ExpressionError(f"Unexpected arguments: {', '.join(sorted(unknown))}")
        try:
            return self._interpreter.evaluate(self._tree.body, arguments)
        except ExpressionError:
            raise
        except _RUNTIME_ERRORS as e:
            raise ExpressionError(
                f"Expression {self.source!r} failed: {type(e).__name__}: {e}"
            ) from e


def compile_expression(
    source: str,
    arg_names: Iterable[str],
    step_limit: int = DEFAULT_STEP_LIMIT,
) -> CompiledExpression:
    """Parse an expression for later evaluation.

    Args:
        source: Python-syntax expression text.
        arg_names: Names the expression may refer to (besides functions
            and true/false/null).
        step_limit: Total node evaluations allowed across all calls.

    Raises:
        ExpressionError: Empty, too long, or not a valid expression.
    """
    if not source or not source.strip():
        raise ExpressionError("Expression is empty")
    if len(source) > MAX_SOURCE_LENGTH:
        raise ExpressionError(f"Expression is longer than {MAX_SOURCE_LENGTH} characters")
    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid expression {source!r}: {e.msg}") from e
    except (RecursionError, MemoryError, ValueError) as e:
        raise ExpressionError(f"Invalid expression {source!r}: {e}") from e
    return CompiledExpression(source, tree, arg_names, step_limit)

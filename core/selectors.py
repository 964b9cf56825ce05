# =============================================================================
# core/selectors.py  -  Slicing, Projection, Filtering & Transforms
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Narrows or reshapes a value that resolve() already located:
#
#     slice_array()    items[start:end], half-open, no negatives, no step
#     project_keys()   keep only the requested keys that exist
#     filter_value()   keep array items / object entries matching a predicate
#     transform()      map / reduce / sort with a user expression
#
#   Every function returns a NEW value.  The source document is never
#   modified, even when an expression fails halfway through.
#
# EXPRESSION ARGUMENTS:
#   filter  : item, key, index, value
#             arrays  -> (element, None, position, element)
#             objects -> (value,   key,  position, value)
#   map     : item, index, array
#   reduce  : acc, item, index, array   (acc starts as {})
#   sort    : a, b                      (negative / zero / positive)
# =============================================================================

import functools
import logging
from typing import Any, Iterable, Optional

from core.errors import ExpressionError, InvalidArgument, TypeMismatch
from core.expressions import DEFAULT_STEP_LIMIT, compile_expression
from core.sampler import json_type

logger = logging.getLogger(__name__)

TRANSFORM_TYPES = ("map", "reduce", "sort")

FILTER_ARGS = ("item", "key", "index", "value")
MAP_ARGS = ("item", "index", "array")
REDUCE_ARGS = ("acc", "item", "index", "array")
SORT_ARGS = ("a", "b")


def slice_array(target: Any, start: Optional[int] = None, end: Optional[int] = None) -> list:
    """Return target[start:end] for an array target.

    Raises:
        TypeMismatch: target is not an array.
        InvalidArgument: start or end is negative.
    """
    if not isinstance(target, list):
        raise TypeMismatch(f"Slice target must be an array, got {json_type(target)}")
    for name, bound in (("start", start), ("end", end)):
        if bound is not None and bound < 0:
            raise InvalidArgument(f"{name} must be a non-negative index, got {bound}")
    begin = 0 if start is None else start
    stop = len(target) if end is None else end
    return target[begin:stop]


def project_keys(target: Any, keys: Iterable[str]) -> dict:
    """Keep only the wanted keys present in an object, in request order.

    Requested keys that the object lacks are dropped, never filled with null.
    """
    if not isinstance(target, dict):
        raise TypeMismatch(f"Key selection needs an object, got {json_type(target)}")
    return {key: target[key] for key in keys if key in target}


def select(
    target: Any,
    start: Optional[int] = None,
    end: Optional[int] = None,
    keys: Optional[list[str]] = None,
) -> Any:
    """Slice an array or project an object's keys, whichever fits the target.

    An object without `keys` is returned whole.

    Raises:
        TypeMismatch: target is neither an array nor an object.
    """
    if isinstance(target, list):
        return slice_array(target, start, end)
    if isinstance(target, dict):
        return project_keys(target, keys) if keys is not None else target
    raise TypeMismatch(f"Slice target must be an array or object, got {json_type(target)}")


def filter_value(target: Any, condition: str, step_limit: int = DEFAULT_STEP_LIMIT) -> Any:
    """Keep array items or object entries for which `condition` is true.

    Raises:
        ExpressionError: The condition does not compile or fails on an item.
        TypeMismatch: target is a scalar or null.
    """
    predicate = compile_expression(condition, FILTER_ARGS, step_limit)

    if isinstance(target, list):
        kept = [
            item for index, item in enumerate(target)
            if predicate(item=item, key=None, index=index, value=item)
        ]
        logger.debug("Filter kept %d of %d items", len(kept), len(target))
        return kept

    if isinstance(target, dict):
        kept = {}
        for index, (key, value) in enumerate(target.items()):
            if predicate(item=value, key=key, index=index, value=value):
                kept[key] = value
        logger.debug("Filter kept %d of %d entries", len(kept), len(target))
        return kept

    raise TypeMismatch(f"Filter target must be an array or object, got {json_type(target)}")


def _compare_result(result: Any, source: str) -> int:
    if isinstance(result, bool):
        return int(result)
    if isinstance(result, (int, float)):
        if result != result:  # NaN
            return 0
        return -1 if result < 0 else (1 if result > 0 else 0)
    raise ExpressionError(
        f"Sort comparator {source!r} must return a number, got {json_type(result)}"
    )


def transform(
    target: Any,
    transform_type: str,
    expression: str,
    step_limit: int = DEFAULT_STEP_LIMIT,
) -> Any:
    """Apply a map, reduce or sort expression.

    Args:
        target: The resolved value.  map/sort need an array; reduce also
            accepts a single non-array value, reduced as a one-item array.
        transform_type: "map", "reduce" or "sort".
        expression: Expression text (see module header for its arguments).
        step_limit: Expression evaluation budget for the whole operation.

    Returns:
        A new list (map, sort) or the final accumulator (reduce).

    Raises:
        InvalidArgument: Unknown transform_type.
        TypeMismatch: map/sort on a non-array.
        ExpressionError: The expression does not compile or fails.
    """
    if transform_type not in TRANSFORM_TYPES:
        raise InvalidArgument(
            f"transform_type must be one of {', '.join(TRANSFORM_TYPES)}; got {transform_type!r}"
        )
    if transform_type != "reduce" and not isinstance(target, list):
        raise TypeMismatch(
            f"Transform target must be an array for {transform_type} operations, "
            f"got {json_type(target)}"
        )

    if transform_type == "map":
        fn = compile_expression(expression, MAP_ARGS, step_limit)
        return [fn(item=item, index=index, array=target) for index, item in enumerate(target)]

    if transform_type == "reduce":
        fn = compile_expression(expression, REDUCE_ARGS, step_limit)
        items = target if isinstance(target, list) else [target]
        acc: Any = {}
        for index, item in enumerate(items):
            acc = fn(acc=acc, item=item, index=index, array=items)
        return acc

    fn = compile_expression(expression, SORT_ARGS, step_limit)

    def _compare(a: Any, b: Any) -> int:
        return _compare_result(fn(a=a, b=b), expression)

    return sorted(target, key=functools.cmp_to_key(_compare))

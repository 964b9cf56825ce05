import pytest

from core.errors import ExpressionError
from core.expressions import compile_expression


def _eval(source, **arguments):
    return compile_expression(source, tuple(arguments))(**arguments)


def test_attribute_access_reads_object_fields():
    assert _eval("item.age > 18", item={"age": 30}) is True
    assert _eval("item.age > 18", item={"age": 3}) is False


def test_missing_field_is_null():
    assert _eval("item.missing", item={}) is None
    assert _eval("item.missing == null", item={}) is True


def test_subscripts_and_slices():
    assert _eval('item["a"][1]', item={"a": [5, 6]}) == 6
    assert _eval("item[1:3]", item=[1, 2, 3, 4]) == [2, 3]


def test_boolean_logic_and_conditionals():
    item = {"age": 20, "country": "NZ"}
    assert _eval('item.age > 18 and item.country == "NZ"', item=item) is True
    assert _eval('item.age < 18 or item.country != "NZ"', item=item) is False
    assert _eval('"adult" if item.age >= 18 else "minor"', item=item) == "adult"
    assert _eval("not item.age", item=item) is False


def test_json_style_constants():
    assert _eval("[true, false, null]") == [True, False, None]


def test_dict_unpacking_builds_new_objects():
    acc = {"a": 1}
    result = _eval('{**acc, item["k"]: item["v"]}', acc=acc, item={"k": "b", "v": 2})
    assert result == {"a": 1, "b": 2}
    assert acc == {"a": 1}


def test_whitelisted_functions_and_methods():
    assert _eval("len(item)", item=[1, 2, 3]) == 3
    assert _eval("item.name.lower()", item={"name": "ALICE"}) == "alice"
    assert _eval('item.name.startswith("A")', item={"name": "Ada"}) is True
    assert _eval('item.get("x", 5)', item={}) == 5
    assert _eval("item.keys()", item={"a": 1, "b": 2}) == ["a", "b"]
    assert _eval("sum(item) / len(item)", item=[2, 4]) == 3
    assert _eval("typeof(item)", item={"a": 1}) == "object"


def test_membership_and_chained_comparisons():
    assert _eval('"x" in item', item=["x"]) is True
    assert _eval("1 < item < 3", item=2) is True
    assert _eval("item is null", item=None) is True


def test_unknown_names_are_rejected():
    with pytest.raises(ExpressionError, match="Unknown name: open"):
        _eval('open("/etc/passwd")')
    with pytest.raises(ExpressionError, match="Unknown name: __import__"):
        _eval('__import__("os")')


def test_private_attributes_are_rejected():
    with pytest.raises(ExpressionError, match="not allowed"):
        _eval("item.__class__", item={})
    with pytest.raises(ExpressionError, match="not allowed"):
        _eval("len.__self__")


def test_unsupported_syntax():
    with pytest.raises(ExpressionError, match="Unsupported syntax: Lambda"):
        _eval("lambda: 1")
    with pytest.raises(ExpressionError, match="Unsupported syntax: ListComp"):
        _eval("[x for x in item]", item=[1])


def test_unknown_methods_are_rejected():
    with pytest.raises(ExpressionError, match="has no attribute"):
        _eval('item.format("x")', item="{}")


def test_syntax_errors():
    with pytest.raises(ExpressionError, match="Invalid expression"):
        compile_expression("item >", ("item",))
    with pytest.raises(ExpressionError, match="Invalid expression"):
        compile_expression("x = 1", ("x",))
    with pytest.raises(ExpressionError, match="empty"):
        compile_expression("   ", ("item",))


def test_runtime_failures_become_expression_errors():
    with pytest.raises(ExpressionError, match="ZeroDivisionError"):
        _eval("1 / item", item=0)
    with pytest.raises(ExpressionError, match="TypeError"):
        _eval("item + 1", item="a")
    with pytest.raises(ExpressionError, match="KeyError"):
        _eval('item["nope"]', item={})


def test_step_limit_spans_calls():
    fn = compile_expression("item + 1", ("item",), step_limit=10)
    with pytest.raises(ExpressionError, match="limit of 10 evaluation steps"):
        for i in range(10):
            fn(item=i)


def test_oversized_operations_are_refused():
    with pytest.raises(ExpressionError, match="Exponent"):
        _eval("2 ** 100000")
    with pytest.raises(ExpressionError, match="Repetition"):
        _eval('"a" * 10000000')


def test_unexpected_arguments():
    fn = compile_expression("item", ("item",))
    with pytest.raises(ExpressionError, match="Unexpected arguments: other"):
        fn(item=1, other=2)

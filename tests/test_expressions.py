# tests/test_expressions.py

from decimal import Decimal

import pytest

from apollo.core import DecodeError, SchemaSyntaxError
from apollo.expressions import (
    Literal,
    ParsedExpression,
    Template,
    Value,
    ValueKind,
    compile_node,
    decode_body,
    evaluate_node,
    initial_context,
    parse_expression,
    parse_string,
)

from conftest import FIXED_NOW


@pytest.fixture
def ctx(fixed_clock):
    base = initial_context(fixed_clock)
    return base.child({
        "amount": Value.number(42),
        "name": Value.string("usdc"),
        "flags": Value.list_of([Value.boolean(True), Value.boolean(False)]),
        "pool": Value.map_of({"fee": Value.number(3000), "token": Value.string("weth")}),
    })


def ev(source, ctx):
    return parse_expression(source).evaluate(ctx).raw


class TestOperators:
    def test_precedence(self, ctx):
        assert ev("1 + 2 * 3", ctx) == 7
        assert ev("(1 + 2) * 3", ctx) == 9
        assert ev("-amount + 2", ctx) == -40

    def test_division(self, ctx):
        assert ev("6 / 3", ctx) == 2
        assert ev("7 / 2", ctx) == Decimal("3.5")
        assert ev("10 % 3", ctx) == 1

    def test_division_by_zero(self, ctx):
        with pytest.raises(DecodeError):
            ev("amount / 0", ctx)

    def test_hex_and_decimal_literals(self, ctx):
        assert ev("0x10", ctx) == 16
        assert ev("1.25 * 4", ctx) == 5

    def test_comparisons(self, ctx):
        assert ev("amount > 40", ctx) is True
        assert ev("amount <= 41", ctx) is False
        assert ev('name == "usdc"', ctx) is True
        assert ev('name != "usdc"', ctx) is False

    def test_logic_short_circuits(self, ctx):
        # `missing` is never evaluated
        assert ev("false && missing", ctx) is False
        assert ev("true || missing", ctx) is True
        assert ev("!false", ctx) is True

    def test_conditional(self, ctx):
        assert ev('amount > 10 ? "big" : missing', ctx) == "big"

    def test_index_and_attribute(self, ctx):
        assert ev("flags[0]", ctx) is True
        assert ev("flags[-1]", ctx) is False
        assert ev("pool.fee", ctx) == 3000
        assert ev('pool["token"]', ctx) == "weth"

    def test_list_literal(self, ctx):
        value = parse_expression("[1, amount, \"x\"]").evaluate(ctx)
        assert value.kind == ValueKind.LIST
        assert value.as_python() == [1, 42, "x"]

    def test_now_is_whole_seconds(self, ctx):
        assert ev("now", ctx) == FIXED_NOW


class TestErrors:
    def test_type_mismatch_names_expression(self, ctx):
        with pytest.raises(DecodeError) as exc_info:
            ev('"a" + 1', ctx)
        assert exc_info.value.context["expression"] == '"a" + 1'

    def test_unknown_variable(self, ctx):
        with pytest.raises(DecodeError, match="unknown variable 'nope'"):
            ev("nope", ctx)

    def test_unknown_function(self, ctx):
        with pytest.raises(DecodeError, match="unknown function 'nope'"):
            ev("nope(1)", ctx)

    def test_index_out_of_range(self, ctx):
        with pytest.raises(DecodeError):
            ev("flags[5]", ctx)

    def test_non_bool_condition(self, ctx):
        with pytest.raises(DecodeError):
            ev("amount ? 1 : 2", ctx)

    def test_syntax_error(self):
        with pytest.raises(SchemaSyntaxError):
            parse_expression("1 +")


class TestBuiltins:
    @pytest.mark.parametrize("source, expected", [
        ('upper(name)', "USDC"),
        ('lower("ABC")', "abc"),
        ('trim("  x ")', "x"),
        ('format("%s-%d", name, 5)', "usdc-5"),
        ('join(",", ["a", "b"])', "a,b"),
        ('replace(name, "u", "U")', "Usdc"),
        ('substr(name, 1, 2)', "sd"),
        ('length(name)', 4),
        ('length(concat([1], [2, 3]))', 3),
        ('contains(flags, false)', True),
        ('element(["a", "b"], 3)', "b"),
        ('lookup(pool, "missing", 0)', 0),
        ('coalesce(null, "", "x")', "x"),
        ('min(3, 1, 2)', 1),
        ('max([3, 9, 2])', 9),
        ('abs(-4)', 4),
        ('ceil(1.2)', 2),
        ('floor(1.8)', 1),
        ('pow(2, 10)', 1024),
        ('tostring(amount)', "42"),
        ('tonumber("0x10")', 16),
        ('parseint("ff", 16)', 255),
        ('format_date("%Y-%m-%d", 0)', "1970-01-01"),
    ])
    def test_builtin(self, ctx, source, expected):
        assert ev(source, ctx) == expected

    def test_parse_decimals(self, ctx):
        assert ev("parse_decimals(1500000, 6)", ctx) == Decimal("1.5")

    def test_split_and_keys(self, ctx):
        assert parse_expression('split(",", "a,b")').evaluate(ctx).as_python() == ["a", "b"]
        assert parse_expression("keys(pool)").evaluate(ctx).as_python() == ["fee", "token"]

    def test_bad_argument_type(self, ctx):
        with pytest.raises(DecodeError):
            ev("upper(amount)", ctx)


class TestStrings:
    def test_single_expression_keeps_type(self, ctx):
        expr = parse_string("${amount * 2}")
        assert isinstance(expr, ParsedExpression)
        assert expr.evaluate(ctx) == Value.number(84)

    def test_template_concatenates(self, ctx):
        expr = parse_string("${name}-${amount}")
        assert isinstance(expr, Template)
        assert expr.evaluate(ctx) == Value.string("usdc-42")

    def test_plain_string_is_literal(self, ctx):
        expr = parse_string("just text")
        assert isinstance(expr, Literal)
        assert expr.evaluate(ctx) == Value.string("just text")

    def test_escaped_interpolation(self, ctx):
        assert parse_string("cost $${amount}").evaluate(ctx) == Value.string("cost ${amount}")

    def test_brace_inside_string_literal(self, ctx):
        assert parse_string('${upper("}")}').evaluate(ctx) == Value.string("}")

    def test_unterminated_interpolation(self):
        with pytest.raises(SchemaSyntaxError):
            parse_string("${amount")


class TestCompiledNodes:
    def test_compile_and_evaluate_nested(self, ctx):
        node = compile_node({"items": ["${amount}", 2, True], "label": "${name}"})
        value = evaluate_node(node, ctx)
        assert value.as_python() == {"items": [42, 2, True], "label": "usdc"}

    def test_decode_body_returns_values(self, ctx):
        body = compile_node({"doubled": "${amount * 2}", "fixed": 5})
        decoded = decode_body(body, ctx)
        assert decoded == {"doubled": Value.number(84), "fixed": Value.number(5)}

    def test_decode_body_empty(self, ctx):
        assert decode_body(None, ctx) == {}

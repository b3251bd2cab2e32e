from __future__ import annotations

import math
import sys
from pathlib import Path

import pytest

from sharpscript import ErrorValue, Interpreter

FIXTURES = Path(__file__).parent / "fixtures"

EXPECTED_KITCHEN_RESULT = {
    "counter_values": [11, 13, 14],
    "loop_total": 9,
    "words": "ac",
    "keys": "xy",
    "total": 3,
    "label": "blue",
    "caught": "Bad:oops:7",
    "cleanup": "done",
    "grid": [[10, 2], [30, 4]],
    "snapshot": [[1, 2], [30, 4]],
    "doubled": 42,
    "area": 7,
    "greeting": "n=1true",
    "dims": 2,
    "kind": "class",
    "same_null": False,
    "Color.RED": 0,
    "Color.GREEN": 1,
    "Color.BLUE": 5,
    "Color.ALPHA": 6,
    "geometry.pi": 3.5,
}


def test_kitchen_sink_fixture_runs(run_script):
    source = (FIXTURES / "kitchen_sink.sharp").read_text()
    env = run_script(source, filename="<kitchen_sink>")
    for name, expected in EXPECTED_KITCHEN_RESULT.items():
        assert env[name] == expected, name
    assert math.isinf(env["ratio"])


def test_kitchen_sink_run_file_calls_main(interpreter):
    result = interpreter.run_file(FIXTURES / "kitchen_sink.sharp")
    assert result.ok
    assert result.diagnostics == []
    assert interpreter.stdout.getvalue() == "kitchen sink: 9 ac blue [11, 13, 14]\n"


# ----- copy-on-read -----


def test_reading_a_variable_copies_arrays(run_script):
    env = run_script("&insert a = [1, 2]; &insert b = a; a[0] = 9;")
    assert env["a"] == [9, 2]
    assert env["b"] == [1, 2]


def test_reading_an_element_copies_nested_collections(run_script):
    env = run_script(
        """
        &insert outer = [[1], {k: 2}];
        &insert inner = outer[0];
        &insert record = outer[1];
        outer[0][0] = 5;
        outer[1]["k"] = 6;
        """
    )
    assert env["inner"] == [1]
    assert env["record"] == {"k": 2}
    assert env["outer"] == [[5], {"k": 6}]


def test_function_arguments_are_copies(run_script):
    env = run_script(
        """
        function poke(items) { items[0] = 99; return items; }
        &insert data = [1, 2];
        &insert poked = poke(data);
        """
    )
    assert env["data"] == [1, 2]
    assert env["poked"] == [99, 2]


# ----- const / type tags -----


def test_const_assignment_fails_and_keeps_value(interpreter):
    result = interpreter.run("const x = 1; x = 2;")
    assert result.ok
    assert result.namespace()["x"] == 1
    assert [d.kind for d in result.diagnostics] == ["const-violation"]


def test_const_rejects_index_store(interpreter):
    result = interpreter.run("const xs = [1, 2]; xs[0] = 5;")
    assert result.namespace()["xs"] == [1, 2]
    assert [d.kind for d in result.diagnostics] == ["const-violation"]


def test_type_annotation_is_checked_on_declaration_and_assignment(interpreter):
    result = interpreter.run(
        """
        &insert n: number = 1;
        n = "two";
        &insert s: string = 3;
        &insert any: unknown = 1;
        any = "fine";
        """
    )
    env = result.namespace()
    assert env["n"] == 1
    assert "s" not in env
    assert env["any"] == "fine"
    assert [d.kind for d in result.diagnostics] == ["type-mismatch", "type-mismatch"]


def test_redeclaration_in_same_scope_is_reported(interpreter):
    result = interpreter.run("&insert x = 1; &insert x = 2;")
    assert result.namespace()["x"] == 1
    assert [d.kind for d in result.diagnostics] == ["redeclaration"]


def test_assignment_to_undeclared_name_is_a_no_op(interpreter):
    result = interpreter.run("y = 3;")
    assert "y" not in result.namespace()
    assert [d.kind for d in result.diagnostics] == ["undeclared-assignment"]


def test_shadowing_a_parent_name_is_allowed(run_script):
    env = run_script(
        """
        &insert x = 1;
        function shadow(void) { &insert x = 2; return x; }
        &insert inner = shadow();
        """
    )
    assert env["x"] == 1
    assert env["inner"] == 2


# ----- scoping and closures -----


def test_function_locals_do_not_leak(interpreter):
    result = interpreter.run(
        """
        function f(void) { &insert hidden = 1; return hidden; }
        &insert got = f();
        &insert leaked = hidden;
        """
    )
    env = result.namespace()
    assert env["got"] == 1
    assert env["leaked"] is None
    assert [d.kind for d in result.diagnostics] == ["undefined-variable"]


def test_closure_sees_defining_scope_after_it_returns(run_script):
    env = run_script(
        """
        function make_adder(n) {
            return function (x) { return x + n; };
        }
        &insert add5 = make_adder(5);
        &insert result = add5(10);
        """
    )
    assert env["result"] == 15


def test_closures_share_their_defining_scope(run_script):
    env = run_script(
        """
        function pair(void) {
            &insert hits = 0;
            function bump(void) { hits += 1; return hits; }
            function peek(void) { return hits; }
            return [bump, peek];
        }
        &insert fns = pair();
        &insert bump = fns[0];
        &insert peek = fns[1];
        bump();
        bump();
        &insert seen = peek();
        """
    )
    assert env["seen"] == 2


def test_recursion(run_script):
    env = run_script(
        """
        function fact(n) {
            if (n <= 1) { return 1; }
            return n * fact(n - 1);
        }
        &insert r = fact(10);
        """
    )
    assert env["r"] == 3628800


def test_parameter_defaults_and_missing_arguments(run_script):
    env = run_script(
        """
        &insert base = 100;
        function f(a, b = base + 1, c) { return [a, b, c]; }
        &insert r = f(1);
        """
    )
    assert env["r"] == [1, 101, None]


def test_extra_arguments_are_not_evaluated(interpreter):
    result = interpreter.run(
        """
        &insert hits = 0;
        function touch(void) { hits += 1; return hits; }
        function one(a) { return a; }
        &insert r = one(1, touch());
        """
    )
    env = result.namespace()
    assert env["r"] == 1
    assert env["hits"] == 0
    assert [d.kind for d in result.diagnostics] == ["arity"]


def test_function_without_return_yields_null(run_script):
    env = run_script("function f(void) { 42; } &insert r = f();")
    assert env["r"] is None


def test_calling_unknown_function_is_a_soft_error(interpreter):
    result = interpreter.run("&insert r = nope(1);")
    assert result.ok
    assert result.namespace()["r"] is None
    assert [d.kind for d in result.diagnostics] == ["undefined-function"]


# ----- control flow -----


def test_break_stops_for_loop_at_two(run_script):
    env = run_script(
        """
        &insert i = 0;
        &insert seen = 0;
        for (i = 0; i < 5; i++) {
            if (i == 2) { break; }
            seen += 1;
        }
        """
    )
    assert env["i"] == 2
    assert env["seen"] == 2


def test_continue_in_for_in_skips_one_iteration(run_script):
    env = run_script(
        """
        &insert out = "";
        for (x in [1, 2, 3]) {
            if (x == 2) { continue; }
            out = out + x;
        }
        """
    )
    assert env["out"] == "13"


def test_while_with_break_and_continue(run_script):
    env = run_script(
        """
        &insert i = 0;
        &insert odd = 0;
        while (true) {
            i += 1;
            if (i > 7) { break; }
            if (i % 2 == 0) { continue; }
            odd += i;
        }
        """
    )
    assert env["odd"] == 1 + 3 + 5 + 7


def test_return_inside_loop_leaves_function(run_script):
    env = run_script(
        """
        function first_over(items, limit) {
            for (x in items) {
                if (x > limit) { return x; }
            }
            return -1;
        }
        &insert r = first_over([1, 5, 9], 4);
        &insert none = first_over([1], 4);
        """
    )
    assert env["r"] == 5
    assert env["none"] == -1


def test_for_in_over_map_yields_key_value_records(run_script):
    env = run_script(
        """
        &insert pairs = "";
        for (p in {a: 1, b: 2}) { pairs = pairs + p.key + "=" + p["value"] + ";"; }
        """
    )
    assert env["pairs"] == "a=1;b=2;"


def test_for_in_over_non_collection_is_reported(interpreter):
    result = interpreter.run("&insert n = 0; for (x in 5) { n += 1; }")
    assert result.namespace()["n"] == 0
    assert [d.kind for d in result.diagnostics] == ["bad-collection"]


def test_else_if_chain(run_script):
    env = run_script(
        """
        &insert x = 2;
        &insert r = "";
        if (x == 1) { r = "one"; } else if (x == 2) { r = "two"; } else { r = "many"; }
        """
    )
    assert env["r"] == "two"


def test_top_level_return_ends_the_program(interpreter):
    result = interpreter.run("&insert a = 1; return a + 1; &insert b = 2;")
    assert result.value.to_python() == 2
    assert "b" not in result.namespace()


# ----- operators -----


@pytest.mark.parametrize(
    "expression, expected",
    [
        ('1 + "x"', "1x"),
        ('"x" + true', "xtrue"),
        ('"v" + null', "vnull"),
        ('2.5 + "!"', "2.5!"),
        ("7 % 3", 1),
        ("-7 % 3", -1),
        ("2 add 3 mul 4", 14),
        ("1 == 1", True),
        ('"a" == "a"', True),
        ('1 == "1"', False),
        ('1 != "1"', True),
        ("null == null", False),
        ("1 < 2 && 0", False),
        ("0 || \"s\"", True),
        ("!\"\"", True),
        ("-(3)", -3),
    ],
)
def test_binary_and_unary_operators(run_script, expression, expected):
    env = run_script(f"&insert r = {expression};")
    assert env["r"] == expected


def test_division_by_zero_follows_ieee(run_script):
    env = run_script("&insert a = 1 / 0; &insert b = -1 / 0; &insert c = 0 / 0; &insert d = 5 % 0;")
    assert env["a"] == math.inf
    assert env["b"] == -math.inf
    assert math.isnan(env["c"])
    assert math.isnan(env["d"])


def test_logical_operators_evaluate_both_sides(run_script):
    env = run_script(
        """
        &insert hits = 0;
        function hit(void) { hits += 1; return true; }
        &insert r = false && hit();
        &insert s = true || hit();
        """
    )
    assert env["hits"] == 2


def test_arithmetic_on_non_numbers_is_reported(interpreter):
    result = interpreter.run("&insert r = [1] - 1;")
    assert result.namespace()["r"] is None
    assert [d.kind for d in result.diagnostics] == ["type-mismatch"]


def test_compound_assignment_falls_back_to_plain_store(run_script):
    env = run_script('&insert s = "a"; s += "b"; &insert n = 2; n *= 5; n -= 1; n /= 3;')
    assert env["s"] == "b"
    assert env["n"] == 3


def test_keyword_compound_assignment(run_script):
    env = run_script("&insert n = 2; add n = 3; mul n = 4;")
    assert env["n"] == 20


def test_increment_and_decrement(run_script):
    env = run_script("&insert n = 1; n++; n++; n--;")
    assert env["n"] == 2


# ----- collections -----


def test_index_reads(run_script):
    env = run_script(
        """
        &insert xs = [10, 20, 30];
        &insert m = {name: "sharp", "count": 2};
        &insert a = xs[1];
        &insert b = xs[7];
        &insert c = xs["1"];
        &insert d = m["name"];
        &insert e = "hey"[1];
        &insert f = m["missing"];
        """
    )
    assert env["a"] == 20
    assert env["b"] is None
    assert env["c"] is None
    assert env["d"] == "sharp"
    assert env["e"] == "e"
    assert env["f"] is None


def test_index_store_into_maps_inserts_keys(run_script):
    env = run_script('&insert m = {a: 1}; m["b"] = 2; m["a"] += 10;')
    assert env["m"] == {"a": 11, "b": 2}


def test_index_store_out_of_range_is_reported(interpreter):
    result = interpreter.run("&insert xs = [1]; xs[3] = 2;")
    assert result.namespace()["xs"] == [1]
    assert [d.kind for d in result.diagnostics] == ["type-mismatch"]


def test_map_keys_keep_insertion_order_and_are_unique(run_script):
    env = run_script('&insert m = {b: 1, a: 2, b: 3};')
    assert list(env["m"].items()) == [("b", 3), ("a", 2)]


# ----- namespaces / enums / classes -----


def test_namespace_flattens_bindings_and_keeps_const(interpreter):
    result = interpreter.run(
        """
        namespace cfg {
            const limit = 3;
            &insert label = "x";
        }
        cfg.label = "y";
        cfg.limit = 4;
        """
    )
    env = result.namespace()
    assert env["cfg.limit"] == 3
    assert env["cfg.label"] == "y"
    assert "limit" not in env
    assert [d.kind for d in result.diagnostics] == ["const-violation"]


def test_namespace_functions_see_their_siblings(run_script):
    env = run_script(
        """
        namespace util {
            function twice(x) { return x * 2; }
            function quad(x) { return twice(twice(x)); }
        }
        &insert r = util.quad(3);
        """
    )
    assert env["r"] == 12


def test_enum_auto_increment(run_script):
    env = run_script("enum E { A, B, C = 5, D }")
    assert (env["E.A"], env["E.B"], env["E.C"], env["E.D"]) == (0, 1, 5, 6)


def test_enum_members_are_const(interpreter):
    result = interpreter.run("enum E { A } E.A = 3;")
    assert result.namespace()["E.A"] == 0
    assert [d.kind for d in result.diagnostics] == ["const-violation"]


def test_class_declaration_binds_a_class_value(run_script):
    env = run_script(
        """
        struct Shape { &insert sides = 0; }
        class Square : Shape {
            &insert sides = 4;
            function area(s) { return s * s; }
        }
        &insert sides = Square.sides;
        &insert area = Square.area(3);
        &insert kind = system.type(Square);
        """
    )
    assert env["sides"] == 4
    assert env["area"] == 9
    assert env["kind"] == "class"


# ----- match -----


def test_match_default_runs_exactly_once(run_script):
    env = run_script(
        """
        &insert x = 2;
        &insert hits = 0;
        &insert which = "";
        match (x) {
            case 1: which = "one";
            default: which = "default"; hits += 1;
        }
        """
    )
    assert env["which"] == "default"
    assert env["hits"] == 1


def test_match_first_matching_case_wins(run_script):
    env = run_script(
        """
        &insert r = "";
        match ("b") {
            case "a": { r = r + "a"; }
            case "b": { r = r + "b1"; }
            case "b": { r = r + "b2"; }
        }
        """
    )
    assert env["r"] == "b1"


def test_match_without_match_or_default_yields_null(run_script):
    env = run_script('&insert r = "keep"; match (3) { case 1: r = "one"; }')
    assert env["r"] == "keep"


def test_match_compares_collections_and_functions_by_identity(run_script):
    env = run_script(
        """
        &insert xs = [1];
        &insert m = {a: 1};
        function f(void) { return 1; }
        &insert arrays = "";
        &insert maps = "";
        &insert funcs = "";
        match (xs) { case xs: arrays = "same"; case [1]: arrays = "literal"; default: arrays = "default"; }
        match (m) { case m: maps = "same"; default: maps = "default"; }
        match (f) { case f: funcs = "same"; default: funcs = "default"; }
        """
    )
    # every read is a fresh copy, so no two reads are the same object
    assert (env["arrays"], env["maps"], env["funcs"]) == ("default", "default", "default")


def test_match_null_subject_hits_null_case(run_script):
    env = run_script(
        """
        &insert r = "";
        &insert nothing = null;
        match (null) { case 0: r = "zero"; case null: r = "null"; default: r = "default"; }
        &insert r2 = "";
        match (nothing) { case null: r2 = "null"; default: r2 = "default"; }
        """
    )
    assert env["r"] == "null"
    assert env["r2"] == "null"


@pytest.mark.parametrize(
    "subject, pattern",
    [("true", "1"), ("1", '"1"'), ("false", "0"), ('""', "false")],
)
def test_match_never_crosses_primitive_types(run_script, subject, pattern):
    env = run_script(
        f'&insert r = ""; match ({subject}) {{ case {pattern}: r = "hit"; default: r = "default"; }}'
    )
    assert env["r"] == "default"


def test_match_primitives_compare_by_value(run_script):
    env = run_script(
        """
        &insert n = 2;
        &insert a = "";
        &insert b = "";
        &insert c = "";
        match (n) { case 1 + 1: a = "two"; default: a = "default"; }
        match ("a" + "b") { case "ab": b = "ab"; default: b = "default"; }
        match (1 < 2) { case true: c = "true"; default: c = "default"; }
        """
    )
    assert (env["a"], env["b"], env["c"]) == ("two", "ab", "true")


def test_break_inside_match_leaves_enclosing_loop(run_script):
    env = run_script(
        """
        &insert n = 0;
        while (true) {
            n += 1;
            match (n) { case 3: break; }
        }
        """
    )
    assert env["n"] == 3


# ----- try / catch / finally -----


def test_try_catch_binds_error_fields(run_script):
    env = run_script(
        """
        &insert after = false;
        try { system.throw("Bad", "oops", 7); } catch (e) { }
        after = true;
        &insert name = e.name;
        &insert message = e.message;
        &insert code = e.code;
        """
    )
    assert env["after"] is True
    assert (env["name"], env["message"], env["code"]) == ("Bad", "oops", 7)
    assert env["e"] == ErrorValue("Bad", "oops", 7.0)


def test_throw_unwinds_through_function_calls(run_script):
    env = run_script(
        """
        function deep(n) {
            if (n == 0) { system.throw("Deep", "bottom"); }
            return deep(n - 1);
        }
        &insert got = "";
        try { deep(5); } catch (err) { got = err.message; }
        """
    )
    assert env["got"] == "bottom"


def test_nested_try_blocks_compose(run_script):
    env = run_script(
        """
        &insert trail = "";
        try {
            try {
                system.throw("Inner");
            } catch (e) {
                trail = trail + "inner:" + e.name + ";";
                system.throw("Outer");
            } finally {
                trail = trail + "f1;";
            }
        } catch (e) {
            trail = trail + "outer:" + e.name + ";";
        } finally {
            trail = trail + "f2;";
        }
        """
    )
    assert env["trail"] == "inner:Inner;f1;outer:Outer;f2;"


def test_try_without_catch_rethrows_after_finally(run_script):
    env = run_script(
        """
        &insert trail = "";
        try {
            try { system.throw("Oops"); } finally { trail = trail + "cleanup;"; }
        } catch (e) {
            trail = trail + e.name;
        }
        """
    )
    assert env["trail"] == "cleanup;Oops"


def test_finally_runs_without_error(run_script):
    env = run_script('&insert r = ""; try { r = "body"; } finally { r = r + "+finally"; }')
    assert env["r"] == "body+finally"


def test_catch_variable_rebinds_on_rerun(run_script):
    env = run_script(
        """
        &insert names = "";
        for (tag in ["A", "B"]) {
            try { system.throw(tag); } catch (e) { names = names + e.name; }
        }
        """
    )
    assert env["names"] == "AB"


def test_uncaught_error_ends_run_and_is_reported(interpreter):
    result = interpreter.run('&insert a = 1; system.throw("Fatal", "boom", 3); &insert b = 2;')
    assert not result.ok
    assert result.exception.error == ErrorValue("Fatal", "boom", 3.0)
    env = result.namespace()
    assert env["a"] == 1
    assert "b" not in env


def test_uncaught_error_restores_interpreter_state(interpreter):
    result = interpreter.run(
        """
        function boom(void) { try { system.throw("X"); } finally { } }
        boom();
        """
    )
    assert not result.ok
    assert interpreter.current is interpreter.globals
    assert interpreter.handler_frames == []
    assert interpreter.run("&insert ok = 1;").ok


def test_runaway_recursion_throws_stack_overflow(interpreter):
    limit = sys.getrecursionlimit()
    result = interpreter.run("function f(n) { return f(n + 1); } f(0);")
    assert result.exception.error.name == "StackOverflow"
    assert interpreter.current is interpreter.globals
    assert interpreter.call_depth == 0
    assert sys.getrecursionlimit() == limit


@pytest.mark.parametrize("depth", [150, 500, 900])
def test_deep_recursion(run_script, depth):
    env = run_script(
        f"""
        function sum(n) {{
            if (n == 0) {{ return 0; }}
            return n + sum(n - 1);
        }}
        &insert r = sum({depth});
        """
    )
    assert env["r"] == depth * (depth + 1) / 2


def test_stack_overflow_is_catchable():
    interp = Interpreter(max_call_depth=50)
    result = interp.run(
        """
        &insert reached = 0;
        function dive(n) { reached = n; return dive(n + 1); }
        &insert caught = "";
        try { dive(1); } catch (e) { caught = e.name; }
        &insert deepest = reached;
        &insert after = dive(1000);
        """
    )
    assert result.exception.error.name == "StackOverflow"
    env = result.namespace()
    assert env["caught"] == "StackOverflow"
    assert env["deepest"] == 50
    assert "after" not in env
    assert interp.call_depth == 0


def test_catch_resumes_in_the_scope_and_depth_of_its_try():
    seen = []

    def snapshot(interp, args, env):
        seen.append((interp.current.name, interp.call_depth, len(interp.handler_frames)))

    interp = Interpreter({"host.snapshot": snapshot})
    result = interp.run(
        """
        function inner(n) {
            if (n == 0) { host.snapshot(); system.throw("Deep"); }
            return inner(n - 1);
        }
        function outer(void) {
            try { inner(3); } catch (e) { host.snapshot(); }
        }
        outer();
        """
    )
    assert result.ok
    assert seen == [("call inner", 5, 1), ("call outer", 1, 0)]


def test_call_depth_is_restored_when_a_catch_unwinds_calls():
    interp = Interpreter(max_call_depth=20)
    env = interp.run(
        """
        function fail(n) { if (n == 0) { system.throw("Deep"); } return fail(n - 1); }
        &insert total = 0;
        for (&insert i = 0; i < 5; i += 1) {
            try { fail(15); } catch (e) { total += 1; }
        }
        """
    ).namespace()
    assert env["total"] == 5


# ----- dispatch edge cases -----


def test_evaluate_tolerates_missing_nodes(interpreter):
    assert interpreter.evaluate(None).to_python() is None


def test_unknown_node_types_evaluate_to_null(interpreter):
    class Mystery:
        pass

    assert interpreter.evaluate(Mystery()).to_python() is None


def test_state_persists_across_runs_until_reset():
    interp = Interpreter()
    interp.run("&insert x = 1;")
    assert interp.run("x += 1;").namespace()["x"] == 2
    interp.reset()
    assert interp.run("&insert x = 5;").namespace()["x"] == 5

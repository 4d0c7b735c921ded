## pcli — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from pcli.parser import parse
from pcli.nodes import *
from pcli.builtins import load_builtins_library
from pcli.interpreter import Interpreter, NORMAL, Returned, apply_infix
from pcli.types import Function
from pcli.errors import PcliNameError, PcliTypeError, PcliArityError, PcliValueError, PcliRuntimeError


def run(source: str, **kwargs):
    return Interpreter(load_builtins_library(), **kwargs).run(parse(source, filename="<test>"))


def test_loop_sums_into_outer_variable():
    assert run("let x = 0\nloop (let i : [1,2,3]) { x = x + i }\nreturn x") == 6


def test_loop_variables_do_not_leak():
    with pytest.raises(PcliNameError):
        run("loop (let i : [1]) { let y = 1 }\nreturn y")
    with pytest.raises(PcliNameError):
        run("loop (let i : [1]) { }\nreturn i")


def test_let_inside_loop_updates_variable_declared_before():
    assert run("let x = 1\nloop (let i : [1]) { let x = 5 }\nreturn x") == 5


def test_names_persist_between_iterations_of_one_loop():
    src = "let out = 0\nlet first = true\nloop (let i : [1, 2]) { if first { let seen = i first = false } else { out = seen } }\nreturn out"
    assert run(src) == 1


def test_break_stops_loop_before_remaining_elements(capsys):
    src = "let n = 0\nloop (let i : [1, 2, 3]) { print(i) n = n + 1 break }\nreturn n"
    assert run(src) == 1
    assert capsys.readouterr().out == "1\n"


def test_break_does_not_propagate_out_of_loop():
    interp = Interpreter(load_builtins_library())
    [loop] = parse("loop (let i : [1, 2, 3]) { break }")
    assert interp.execute(loop) is NORMAL


def test_unbounded_loop_runs_until_break():
    assert run("let i = 0\nloop { i = i + 1 if i == 3 { break } }\nreturn i") == 3


def test_continue_skips_rest_of_body():
    src = "let s = 0\nloop (let i : [1, 2, 3, 4]) { if i % 2 == 0 { continue } s = s + i }\nreturn s"
    assert run(src) == 4


def test_return_inside_loop_propagates_through_function():
    assert run("fn first(xs) { loop (let x : xs) { return x } }\nreturn first([7, 8])") == 7


def test_return_skips_statements_after_if(capsys):
    src = 'fn f(cond) { if cond { return 1 } print("unreachable") return 2 }\nreturn f(true)'
    assert run(src) == 1
    assert capsys.readouterr().out == ""


def test_return_without_value_at_top_level_ends_program(capsys):
    assert run('print("a")\nif true { return }\nprint("b")') is None
    assert capsys.readouterr().out == "a\n"


def test_function_without_return_yields_no_value():
    with pytest.raises(PcliValueError):
        run("fn f() { }\nlet y = f()")


def test_call_arity_is_checked_in_both_directions():
    with pytest.raises(PcliArityError) as excinfo:
        run("fn f(a, b) { return a }\nf(1)")
    assert (excinfo.value.expected, excinfo.value.received) == (2, 1)
    with pytest.raises(PcliArityError):
        run("fn f(a, b) { return a }\nf(1, 2, 3)")


def test_recursion():
    assert run("fn fact(n) { if n <= 1 { return 1 } return n * fact(n - 1) }\nreturn fact(5)") == 120


def test_functions_do_not_see_caller_variables():
    with pytest.raises(PcliNameError):
        run("let x = 1\nfn f() { return x }\nreturn f()")


def test_function_variables_vanish_after_call():
    with pytest.raises(PcliNameError):
        run("fn f() { let z = 1 }\nf()\nreturn z")


def test_functions_declared_inside_functions_stay_local():
    src = "fn outer() { fn inner() { return 1 } return inner() }\nlet a = outer()\nreturn inner()"
    with pytest.raises(PcliNameError):
        run(src)
    assert run("fn outer() { fn inner() { return 1 } return inner() }\nreturn outer()") == 1


def test_callee_sees_functions_of_its_caller():
    assert run("fn helper() { return 2 }\nfn g() { return helper() }\nreturn g()") == 2


def test_redeclaring_a_function_overwrites_it():
    assert run("fn f() { return 1 }\nfn f() { return 2 }\nreturn f()") == 2


def test_assign_to_undeclared_name_is_an_error():
    with pytest.raises(PcliNameError):
        run("x = 1")


def test_assignment_yields_no_value():
    with pytest.raises(PcliValueError):
        run("let x = 1\nlet y = x = 2")


def test_condition_must_be_boolean():
    with pytest.raises(PcliTypeError):
        run("if 1 { }")


def test_loop_iterable_must_be_list():
    with pytest.raises(PcliTypeError):
        run('loop (let c : "abc") { }')


def test_undefined_identifier_reports_line():
    with pytest.raises(PcliNameError) as excinfo:
        run("let a = 1\nreturn b")
    assert excinfo.value.pcl_line == 2
    assert excinfo.value.pcl_token == 'b'


def test_errors_inside_functions_report_innermost_line():
    with pytest.raises(PcliTypeError) as excinfo:
        run("fn f() {\n  return 1 + true\n}\nf()")
    assert excinfo.value.pcl_line == 2


@pytest.mark.parametrize("source, expected", [
    ("return 1 + 2 * 3", 7),
    ("return (1 + 2) * 3", 9),
    ("return 7 / 2", 3.5),
    ("return 7 % 3", 1),
    ("return -7 % 3", -1),
    ("return -(2 - 5)", 3),
    ("return 2 >= 2", True),
    ("return 1 != 1", False),
    ("return true && false || true", True),
    ("return !true", False),
    ('return "a" == "a"', True),
    ('return "a" != "b"', True),
])
def test_operator_table(source, expected):
    assert run(source) == expected


@pytest.mark.parametrize("source", [
    'return 1 + "a"',
    'return "a" + "b"',
    'return true + 1',
    'return 1 && true',
    'return "a" < "b"',
    'return [1] == [1]',
    'return -true',
    'return !1',
])
def test_unsupported_operations_are_type_errors(source):
    with pytest.raises(PcliTypeError):
        run(source)


def test_division_by_zero():
    with pytest.raises(PcliValueError):
        run("return 1 / 0")
    with pytest.raises(PcliValueError):
        run("return 1 % 0")


def test_both_operands_are_evaluated_left_to_right(capsys):
    src = 'fn t(s) { print(s) return true }\nreturn t("left") || t("right")'
    assert run(src) is True
    assert capsys.readouterr().out == "left\nright\n"


def test_lists_are_immutable_values():
    assert run('return [1, [2, true], "s"]') == (1.0, (2.0, True), "s")


def test_indexing_and_length():
    assert run("let xs = [4, 5]\nreturn xs[1] + xs.len") == 7
    assert run('return "abc"[2]') == "c"
    with pytest.raises(PcliValueError):
        run("return [1][1]")
    with pytest.raises(PcliTypeError):
        run("return [1][0.5]")
    with pytest.raises(PcliTypeError):
        run("return (1).len")


def test_function_values_can_be_bound_and_called():
    assert run("let double = fn (x) { return x * 2 }\nreturn double(4)") == 8
    assert run("return fn (x) { return x + 1 }(1)") == 2


def test_function_values_capture_nothing():
    with pytest.raises(PcliNameError):
        run("let k = 3\nlet f = fn () { return k }\nreturn f()")


def test_calling_a_non_function_is_a_type_error():
    with pytest.raises(PcliTypeError):
        run("let n = 1\nreturn n()")


def test_calling_an_unknown_name_is_a_name_error():
    with pytest.raises(PcliNameError):
        run("nothing_here(1)")


def test_builtins_take_priority_over_user_functions(capsys):
    run('fn print(x) { return x }\nprint("builtin")')
    assert capsys.readouterr().out == "builtin\n"


def test_builtin_calls_produce_no_value(capsys):
    with pytest.raises(PcliValueError):
        run("let x = print(1)")
    assert capsys.readouterr().out == "1\n"


def test_literal_evaluation_is_idempotent():
    interp = Interpreter(load_builtins_library())
    for literal in (Number(3), String("s"), Boolean(False)):
        results = [interp.evaluate(literal) for _ in range(3)]
        assert results == [literal.value] * 3


def test_break_signal_escaping_program_is_rejected():
    interp = Interpreter(load_builtins_library())
    with pytest.raises(PcliRuntimeError):
        interp.run([Break()])


def test_invalid_assignment_target_built_by_hand_is_rejected():
    interp = Interpreter(load_builtins_library())
    with pytest.raises(PcliTypeError):
        interp.evaluate(Assign(Number(1), Number(2)))


def test_runaway_recursion_becomes_runtime_error():
    with pytest.raises(PcliRuntimeError):
        run("fn f(n) { return f(n + 1) }\nreturn f(0)")


def test_long_operator_chain_evaluates():
    assert run("return " + " + ".join(["1"] * 600)) == 600


def test_deep_user_recursion():
    src = "fn s(n) { if n == 0 { return 0 } return n + s(n - 1) }\nreturn s(1000)"
    assert run(src) == 500500


def test_nesting_too_deep_outside_calls_becomes_runtime_error():
    expr = Number(1)
    for _ in range(60_000):
        expr = Infix(expr, Operator.ADD, Number(1))
    interp = Interpreter(load_builtins_library())
    with pytest.raises(PcliRuntimeError):
        interp.run([Return(expr)])


def test_function_literals_are_anonymous():
    fn = run("return fn (x) { return x }")
    assert fn.name == 'anonymous'
    assert repr(fn) == "<fn anonymous>"


def test_stats_count_steps_and_calls():
    stats = {}
    run("fn f() { return 1 }\nlet a = f()\nlet b = f()", stats=stats)
    assert stats == {'steps': 5, 'calls': 2}


def test_verbose_trace_shows_statements_and_calls(capsys):
    run("fn f(x) { return x }\nlet a = f(1)", verbosity=2)
    out = capsys.readouterr().out
    assert "let a = f(1)" in out
    assert "return x" in out
    assert "f(1)" in out


def test_apply_infix_directly():
    assert apply_infix(2.0, Operator.MULTIPLY, 4.0) == 8.0
    assert apply_infix(True, Operator.EQUALS, False) is False

## pcli — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys

import pytest

import pcli.api as P
from pcli.operators import op_print, op_cmd
from pcli.builtins import get_builtin_name, load_builtins_library
from pcli.errors import PcliArityError, PcliNameError, PcliValueError


def test_print_concatenates_formatted_values(capsys):
    op_print(1.0, " ", 2.5, True, (1.0, (2.0,), "a"))
    assert capsys.readouterr().out == "1 2.5true[ 1, [ 2 ], a ]\n"


def test_print_from_script(capsys):
    P.run('print("Hello ", [1, 2, 3])')
    assert capsys.readouterr().out == "Hello [ 1, 2, 3 ]\n"


def test_print_empty_list_and_no_arguments(capsys):
    P.run('print([])\nprint()')
    assert capsys.readouterr().out == "[  ]\n\n"


def test_cmd_runs_program_and_waits(capfd):
    code = op_cmd(sys.executable, "-c", "print('from child')")
    assert code == 0
    assert capfd.readouterr().out == "from child\n"


def test_cmd_formats_arguments_like_print(capfd):
    op_cmd(sys.executable, "-c", "import sys; print(sys.argv[1:])", 2.0, True)
    assert capfd.readouterr().out == "['2', 'true']\n"


def test_cmd_reports_launch_failure_without_raising(capfd):
    assert op_cmd("/nonexistent/pcli-program") is None
    assert "command failed!" in capfd.readouterr().err


def test_cmd_needs_a_program_name():
    with pytest.raises(PcliArityError):
        P.run("cmd()")


def test_cmd_output_is_ordered_after_earlier_prints(capfd):
    P.run(f'print("before")\ncmd("{sys.executable}", "-c", "print(42)")')
    assert capfd.readouterr().out == "before\n42\n"


def test_builtin_results_are_discarded():
    with pytest.raises(PcliValueError):
        P.run(f'let code = cmd("{sys.executable}", "-c", "pass")')


def test_run_is_an_alias_of_cmd(capfd):
    lib = load_builtins_library()
    assert lib.has_builtin('run')
    assert lib.get_builtin('run') is lib.get_builtin('cmd')
    P.run(f'run("{sys.executable}", "-c", "print(7)")')
    assert capfd.readouterr().out == "7\n"


def test_builtin_names_follow_op_prefix_convention():
    assert get_builtin_name('op_print') == 'print'
    assert get_builtin_name('op_empty_q') == 'empty?'
    with pytest.raises(PcliNameError):
        get_builtin_name('print')


def test_library_lists_builtins_and_aliases():
    assert {'print', 'cmd', 'run'} <= set(load_builtins_library().names())


def test_print_renders_function_values(capsys):
    P.run("print(fn () { })\nlet f = fn () { }\nprint(f)")
    assert capsys.readouterr().out == "<fn anonymous>\n<fn anonymous>\n"

import pytest

import pale
from pale import ScriptRunner, Environment, ExecutionResult
from pale.pale_datatypes import UnboundName, EmptyExpression, BadArguments, StepLimitExceeded


def assert_ok(res, expected=None):
    assert res.status == "success", f"expected success, got {res}"
    if expected is not None:
        assert res.value == expected, f"expected {expected!r}, got {res.value!r}"


def assert_error(res, contains=None):
    assert res.status == "error", f"expected error, got {res}"
    if contains is not None:
        assert contains in (res.error_message or ""), res.error_message


def test_run_returns_last_value():
    runner = ScriptRunner()
    assert runner.run("(+ 34 35)") == 69


def test_handle_script_collects_stdout():
    runner = ScriptRunner()
    res = runner.handle_script('(print "hi")\n(print $ + 1 2)')
    assert_ok(res)
    assert res.value is None
    assert res.stdout == ["hi", "3"]


def test_empty_script_succeeds_with_no_value():
    res = ScriptRunner().handle_script("")
    assert_ok(res)
    assert res.value is None
    assert res.side_effects == []


def test_run_raises_language_errors():
    runner = ScriptRunner()
    with pytest.raises(UnboundName):
        runner.run("(nope)")
    with pytest.raises(EmptyExpression):
        runner.run("()")


def test_each_run_starts_from_fresh_side_effects():
    runner = ScriptRunner()
    runner.handle_script("(print 1)")
    res = runner.handle_script("(print 2)")
    assert res.stdout == ["2"]


def test_each_run_gets_a_fresh_environment():
    runner = ScriptRunner()
    env = runner.new_environment()
    env["extra"] = lambda: "only here"
    assert runner.run("(extra)", env) == "only here"
    with pytest.raises(UnboundName):
        runner.run("(extra)")


def test_caller_supplied_environment_is_used_as_is():
    env = Environment({"double": lambda x: x * 2})
    assert ScriptRunner(load_stdlib=False).run("(double 21)", env) == 42


def test_without_stdlib_nothing_is_bound():
    runner = ScriptRunner(load_stdlib=False)
    assert runner.bindings() == []
    res = runner.handle_script("(print 1)")
    assert_error(res, "Unknown identifier `print`!")
    assert isinstance(res.error, UnboundName)


def test_stdlib_bindings():
    assert ScriptRunner().bindings() == ["*", "+", "-", "/", "apply", "concat", "print", "to-str"]


def test_register_native_function():
    runner = ScriptRunner()
    runner.register("greet", lambda name: f"hello {name}")
    assert runner.run('(greet "bob")') == "hello bob"


def test_register_as_decorator():
    runner = ScriptRunner(load_stdlib=False)

    @runner.register("square")
    def square(x):
        return x * x

    assert square(3) == 9
    assert runner.run("(square 7)") == 49


def test_register_replaces_a_binding():
    runner = ScriptRunner()
    runner.register("print", lambda value: "custom")
    res = runner.handle_script("(print 1)")
    assert_ok(res, "custom")
    assert res.stdout == []


def test_unregister():
    runner = ScriptRunner()
    runner.unregister("print")
    assert "print" not in runner.bindings()
    assert_error(runner.handle_script("(print 1)"), "print")
    with pytest.raises(KeyError):
        runner.unregister("print")


def test_concat_and_to_str():
    runner = ScriptRunner()
    assert runner.run('(concat "n=" (to-str 5) " " 2.5)') == "n=5 2.5"
    assert runner.run("(to-str print)") == "<function print>"


def test_apply_rejects_non_functions():
    res = ScriptRunner().handle_script("(apply 1 2)")
    assert_error(res, "TypeError: apply expects a function")


def test_native_exception_is_reported_unchanged():
    runner = ScriptRunner()

    def explode():
        raise RuntimeError("kaboom")

    runner.register("explode", explode)
    res = runner.handle_script("(explode)")
    assert_error(res, "RuntimeError: kaboom")
    assert isinstance(res.error, RuntimeError)
    assert res.error_token["line"] == 1 and res.error_token["col"] == 2


def test_errors_keep_earlier_side_effects():
    res = ScriptRunner().handle_script('(print "before")\n(+ 1 "a")')
    assert_error(res)
    assert isinstance(res.error, BadArguments)
    assert res.stdout == ["before"]
    assert res.side_effects[-1]["topics"] == ["stderr"]


def test_max_steps():
    runner = ScriptRunner(max_steps=3)
    res = runner.handle_script("(+ 1 2 3)")
    assert_error(res, "Step limit of 3 exceeded!")
    assert isinstance(res.error, StepLimitExceeded)


def test_filename_is_used_in_locations():
    runner = ScriptRunner(filename="game.pale")
    res = runner.handle_script("(nope)")
    assert res.error.loc.filename == "game.pale"
    assert "(game.pale:1:2)" in res.error_message


def test_format_error_prefixes_line_and_col():
    res = ScriptRunner().handle_script("\n  (nope)")
    assert res.format_error().startswith("Error on line 2, col 4: UnboundName:")


def test_format_error_on_success_is_empty():
    assert ExecutionResult(status="success", value=1).format_error() == ""


def test_module_level_run():
    assert pale.run("(* 6 7)") == 42
    assert pale.run("(inc 1)", Environment({"inc": lambda x: x + 1})) == 2


def test_default_environment_holds_the_stdlib():
    env = pale.default_environment()
    assert "print" in env and "+" in env
    assert pale.run("(+ 1 1)", env) == 2


def test_format_error_without_a_location():
    assert ExecutionResult(status="error", error_message="Oops").format_error() == "Oops"


def test_nil_round_trips_through_natives():
    runner = ScriptRunner()
    runner.register("is-nil", lambda value: value is None)
    assert runner.run("(is-nil nil)") is True
    assert runner.run('(concat "x=" nil)') == "x=nil"

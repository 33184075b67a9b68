"""
Tests for the symbol environment.
"""

import threading

import pytest
from pydantic import ValidationError

from exprlang import (
    CallFrame,
    Environment,
    EnvironmentConfig,
    ParseError,
    ReadOnlyViolationError,
    ScalarNode,
    StackUnderflowError,
)
from exprlang.ast import ListNode, NativeFunctionNode, ScopedNativeFunctionNode, SymbolNode


@pytest.fixture
def env() -> Environment:
    return Environment()


class TestBootstrap:
    """Tests for the symbols every environment starts with."""

    def test_constants_are_registered_and_locked(self, env):
        for name in ("null", "true", "false", "empty"):
            assert name in env
            assert env.is_locked(name)

    def test_constant_values(self, env):
        assert env.get("null") is env.null
        assert env.get("true") is env.true
        assert env.get("false") is env.false
        assert env.get("empty") is env.empty
        assert env.null.value() is None
        assert env.true.value() is True
        assert env.false.value() is False
        assert env.empty.value() == ""

    def test_print_is_registered_unlocked(self, env):
        assert isinstance(env.get("print"), NativeFunctionNode)
        assert not env.is_locked("print")

    def test_names(self, env):
        assert env.names() == ["empty", "false", "null", "print", "true"]

    def test_environments_are_independent(self):
        first = Environment()
        second = Environment()
        first.set("x", ScalarNode.of(1))
        assert "x" not in second
        assert first.true is not second.true


class TestSymbolTable:
    """Tests for set, get and lock."""

    def test_set_and_get(self, env):
        value = ScalarNode.of(42)
        env.set("answer", value)
        assert env.get("answer") is value

    def test_set_replaces_unlocked_value(self, env):
        env.set("x", ScalarNode.of(1))
        env.set("x", ScalarNode.of(2))
        assert env.get("x").value() == 2

    def test_stores_unevaluated_expressions(self, env):
        expression = env.parse("a + b")
        env.set("sum", expression)
        assert env.get("sum") is expression

    def test_missing_name_gives_null_without_registering(self, env):
        assert env.get("missing") is env.null
        assert "missing" not in env

    def test_missing_name_is_registered_when_autoregistering(self):
        env = Environment({"autoregister_globals": True})
        assert env.get("missing") is env.null
        assert "missing" in env
        assert not env.is_locked("missing")

    @pytest.mark.parametrize("name", ["true", "false", "null"])
    def test_locked_constants_cannot_be_set(self, env, name):
        before = env.get(name)
        with pytest.raises(ReadOnlyViolationError) as exc_info:
            env.set(name, ScalarNode.of("changed"))
        assert exc_info.value.name == name
        assert env.get(name) is before

    def test_unlock_then_set(self, env):
        env.lock("true", False)
        replacement = ScalarNode.of(1)
        env.set("true", replacement)
        assert env.get("true") is replacement

    def test_lock_keeps_value(self, env):
        value = ScalarNode.of("v")
        env.set("x", value)
        env.lock("x")
        assert env.is_locked("x")
        assert env.get("x") is value
        with pytest.raises(ReadOnlyViolationError):
            env.set("x", ScalarNode.of("w"))

    def test_locking_absent_name_registers_null(self, env):
        env.lock("x")
        assert "x" in env
        assert env.get("x") is env.null
        assert env.is_locked("x")

    def test_is_locked_for_absent_name(self, env):
        assert not env.is_locked("absent")

    def test_lock_table_allows_check_then_set(self, env):
        with env.lock_table() as table:
            if "counter" not in table:
                table.set("counter", ScalarNode.of(0))
        assert env.get("counter").value() == 0

    def test_concurrent_sets(self, env):
        def worker(index: int) -> None:
            for n in range(50):
                env.set(f"w{index}.{n}", ScalarNode.of(n))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(env.names()) == 5 + 4 * 50


class TestTruthiness:
    """Tests for is_truthy."""

    def test_canonical_falsy_values(self, env):
        assert not env.is_truthy(env.null)
        assert not env.is_truthy(env.false)

    def test_falsy_payloads(self, env):
        assert not env.is_truthy(ScalarNode.of(None))
        assert not env.is_truthy(ScalarNode.of(False))

    @pytest.mark.parametrize("payload", [True, 0, 0.0, "", "x", 1])
    def test_truthy_payloads(self, env, payload):
        assert env.is_truthy(ScalarNode.of(payload))

    def test_lists_are_truthy(self, env):
        assert env.is_truthy(ListNode())


class TestNativeFunctions:
    """Tests for native function registration."""

    def test_register_function(self, env):
        function = env.register_function("double", lambda e, args: None)
        assert env.get("double") is function
        assert function.literal() == "(#native-function:double#)"
        assert function.evaluate(env) is function

    def test_register_scoped_function(self, env):
        function = env.register_scoped_function("str", "upper", lambda e, args: None)
        assert isinstance(function, ScopedNativeFunctionNode)
        assert env.get("str.upper") is function
        assert function.literal() == "(#native-function:str.upper#)"

    def test_print_can_be_replaced(self, env):
        replacement = env.register_function("print", lambda e, args: None)
        assert env.get("print") is replacement

    def test_locked_function_cannot_be_replaced(self, env):
        env.register_function("f", lambda e, args: 1)
        env.lock("f")
        with pytest.raises(ReadOnlyViolationError):
            env.register_function("f", lambda e, args: 2)


class TestCallStack:
    """Tests for the call frame stack."""

    def test_push_and_pop(self, env):
        function = env.get("print")
        frame = CallFrame(callee=function, args=(SymbolNode(name="x"),))
        env.push_frame(frame)
        assert env.call_depth == 1
        assert env.current_frame() is frame
        assert env.frames() == (frame,)
        assert env.pop_frame() is frame
        assert env.call_depth == 0

    def test_pop_empty_stack(self, env):
        with pytest.raises(StackUnderflowError):
            env.pop_frame()

    def test_peek_empty_stack(self, env):
        with pytest.raises(StackUnderflowError):
            env.current_frame()


class TestConfiguration:
    """Tests for environment configuration."""

    def test_accepts_mapping(self):
        env = Environment({"max_call_depth": 2})
        assert env.limits.max_call_depth == 2
        assert env.call_stack.max_depth == 2

    def test_accepts_model(self):
        config = EnvironmentConfig(max_ast_depth=10)
        env = Environment(config)
        assert env.config is config
        assert env.limits.max_ast_depth == 10

    def test_rejects_unknown_options(self):
        with pytest.raises(ValidationError):
            Environment({"no_such_option": True})

    def test_strict_parsing(self):
        assert Environment().parse("a b") == SymbolNode(name="a")
        with pytest.raises(ParseError):
            Environment({"strict_parsing": True}).parse("a b")

    def test_include_whitespace_parses_the_same(self):
        env = Environment({"include_whitespace": True})
        assert env.parse("a  ||\n b") == Environment().parse("a || b")

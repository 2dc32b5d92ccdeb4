import concurrent.futures

import pytest

from poplar.api_builder import ApiBuilder
from poplar.errors import HandlerError, MethodNotFoundError
from poplar.models import InvocationContext


def test_define_and_lookup_methods() -> None:
    builder = ApiBuilder("users")
    method = builder.define(
        "login",
        {"description": "Sign a user in", "accepts": [{"arg": "email", "validates": {"required": True}}]},
        lambda params, cb: cb(None, params),
    )

    assert builder.method("login") is method
    assert method.full_name == "users.login"
    assert method.description == "Sign a user in"
    assert method.accepts[0].arg == "email"
    assert list(builder.methods()) == ["login"]
    with pytest.raises(MethodNotFoundError):
        builder.method("logout")


def test_invalid_collection_names() -> None:
    with pytest.raises(ValueError):
        ApiBuilder("")
    with pytest.raises(ValueError):
        ApiBuilder("users.admin")


def test_builder_hooks_are_exposed_for_merging() -> None:
    builder = ApiBuilder("users")

    def hook(ctx, proceed) -> None:
        proceed()

    builder.before("users.*", hook)
    builder.after_error("users.login", hook)

    assert dict(builder.listeners()) == {"before.users.*": [hook], "afterError.users.login": [hook]}


def test_invoke_passes_params_and_result() -> None:
    builder = ApiBuilder("users")
    method = builder.define("echo", {}, lambda params, cb: cb(None, params["value"]))

    outcome: list = []
    method.invoke(InvocationContext(params={"value": 42}), lambda err, result: outcome.append((err, result)))

    assert outcome == [(None, 42)]


def test_invoke_future_result() -> None:
    builder = ApiBuilder("users")
    pending: concurrent.futures.Future = concurrent.futures.Future()
    method = builder.define("slow", {}, lambda params, cb: pending)

    outcome: list = []
    method.invoke({}, lambda err, result: outcome.append((err, result)))
    assert outcome == []
    pending.set_result("done")

    assert outcome == [(None, "done")]


def test_invoke_wraps_plain_error_values() -> None:
    builder = ApiBuilder("users")
    method = builder.define("fail", {}, lambda params, cb: cb("nope"))

    outcome: list = []
    method.invoke({}, lambda err, result: outcome.append(err))

    assert isinstance(outcome[0], HandlerError)
    assert outcome[0].reason == "nope"


def test_non_callable_handler_is_rejected() -> None:
    with pytest.raises(TypeError):
        ApiBuilder("users").define("broken", {}, "not callable")

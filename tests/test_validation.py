import logging

from poplar.models import AcceptSpec
from poplar.validation import ValidationError, ValidatorLibrary, validate


def test_required_on_empty_value() -> None:
    errors = validate({"email": ""}, [{"arg": "email", "validates": {"required": {"message": "email is required"}}}])

    assert errors.any() is True
    assert errors.flatten() == ["email is required"]
    assert errors.as_json() == {"email": {"required": "email is required"}}


def test_missing_and_none_values_are_empty() -> None:
    accepts = [
        {"arg": "email", "validates": {"required": True}},
        {"arg": "name", "validates": {"required": {}}},
    ]
    errors = validate({"name": None}, accepts)

    assert errors.as_json() == {
        "email": {"required": "email: 'required' validation failed"},
        "name": {"required": "name: 'required' validation failed"},
    }


def test_empty_value_skips_other_validators() -> None:
    errors = validate({"email": ""}, [{"arg": "email", "validates": {"email": {"message": "not a valid email"}}}])
    assert not errors.any()


def test_non_empty_value_never_triggers_required() -> None:
    accepts = [
        {
            "arg": "email",
            "validates": {
                "required": {"message": "email is required"},
                "isEmail": {"message": "not a valid email"},
            },
        }
    ]
    errors = validate({"email": "not-an-email"}, accepts)

    assert errors.as_json() == {"email": {"isEmail": "not a valid email"}}


def test_required_function_receives_value_and_params() -> None:
    def phone_or_email(value, params):
        if not params.get("phone"):
            return "email or phone is required"
        return None

    accepts = [{"arg": "email", "validates": {"required": phone_or_email}}]

    assert validate({"email": ""}, accepts).flatten() == ["email or phone is required"]
    assert not validate({"email": "", "phone": "555"}, accepts).any()


def test_custom_function_validators() -> None:
    accepts = [
        {
            "arg": "password",
            "validates": {
                "long_enough": lambda value, params: None if len(value) >= 8 else "password is too short",
                "disabled": None,
            },
        }
    ]
    assert validate({"password": "short"}, accepts).flatten() == ["password is too short"]
    assert not validate({"password": "long enough"}, accepts).any()


def test_package_validators_and_legacy_aliases() -> None:
    accepts = [
        {"arg": "email", "validates": {"email": {"message": "not a valid email"}}},
        {"arg": "site", "validates": {"isURL": True}},
    ]
    errors = validate({"email": "nope", "site": "not a url"}, accepts)

    assert errors.as_json() == {
        "email": {"email": "not a valid email"},
        "site": {"isURL": "site: 'isURL' validation failed"},
    }
    assert not validate({"email": "ada@example.com", "site": "https://example.com"}, accepts).any()


def test_keyword_args_are_passed_to_validator() -> None:
    accepts = [{"arg": "name", "validates": {"length": {"args": {"min_val": 5}, "message": "name is too short"}}}]

    assert validate({"name": "abc"}, accepts).flatten() == ["name is too short"]
    assert not validate({"name": "abcdef"}, accepts).any()


def test_positional_args_are_flattened_into_call() -> None:
    library = ValidatorLibrary()
    library.define("len_between", lambda value, low, high: low <= len(value) <= high)
    accepts = [{"arg": "code", "validates": {"len_between": {"args": [2, 4], "message": "bad code"}}}]

    assert validate({"code": "toolong"}, accepts, library=library).flatten() == ["bad code"]
    assert not validate({"code": "abc"}, accepts, library=library).any()


def test_unknown_validator_is_skipped(caplog) -> None:
    accepts = [{"arg": "name", "validates": {"isNonsense": {"message": "never"}}}]
    with caplog.at_level(logging.DEBUG, logger="poplar.validation"):
        errors = validate({"name": "ada"}, accepts)

    assert not errors.any()
    assert "isNonsense" in caplog.text


def test_raising_validator_is_logged_and_ignored(caplog) -> None:
    def broken(value, params):
        raise ZeroDivisionError("oops")

    accepts = [
        {"arg": "age", "validates": {"broken": broken, "positive": lambda value, params: value < 0 and "negative"}},
        {"arg": "name", "validates": {"required": {"message": "name is required"}}},
    ]
    with caplog.at_level(logging.DEBUG, logger="poplar.validation"):
        errors = validate({"age": -1}, accepts)

    assert errors.flatten() == ["negative", "name is required"]
    assert "ZeroDivisionError" in caplog.text


def test_flatten_is_parameter_then_validator_ordered() -> None:
    accepts = [
        AcceptSpec(
            arg="email",
            validates={
                "a": lambda value, params: "email a",
                "b": lambda value, params: "email b",
            },
        ),
        AcceptSpec(arg="name", validates={"required": {"message": "name is required"}}),
        AcceptSpec(arg="ok", validates={"fine": lambda value, params: None}),
    ]
    errors = validate({"email": "x", "ok": "y"}, accepts)

    assert errors.flatten() == ["email a", "email b", "name is required"]
    assert list(errors.as_json()) == ["email", "name"]
    assert errors.to_human() == "email a; email b; name is required"


def test_validation_error_defaults() -> None:
    errors = ValidationError()
    assert not errors.any()
    assert not errors
    errors.add("email", "isEmail")
    assert errors.flatten() == ["email: 'isEmail' validation failed"]

    custom = ValidationError("{name} failed {validator}")
    custom.add("email", "required")
    assert custom.flatten() == ["email failed required"]


def test_validate_tolerates_missing_inputs() -> None:
    assert not validate(None, None).any()
    assert not validate({"a": 1}, [{"arg": "a"}]).any()


def test_library_lookup() -> None:
    library = ValidatorLibrary()
    assert "email" in library
    assert "isEmail" in library
    assert "ValidationError" not in library
    assert "_private" not in library
    library.define("even", lambda value: value % 2 == 0)
    assert library.get("even")(4)
    library.undefine("even")
    assert "even" not in library


def test_empty_mapping_applies_named_validator_with_default_message() -> None:
    accepts = [{"arg": "email", "validates": {"email": {}}}]

    assert validate({"email": "nope"}, accepts).as_json() == {"email": {"email": "email: 'email' validation failed"}}
    assert not validate({"email": "ada@example.com"}, accepts).any()


def test_only_none_and_false_disable_a_validator() -> None:
    accepts = [
        {"arg": "email", "validates": {"email": False, "url": None}},
        {"arg": "name", "validates": {"required": False}},
    ]
    assert not validate({"email": "nope"}, accepts).any()


def test_package_helpers_are_not_validators() -> None:
    library = ValidatorLibrary()
    assert library.get("validator") is None
    assert library.get("utils") is None

    accepts = [{"arg": "email", "validates": {"validator": {"message": "never"}}}]
    assert not validate({"email": "nope"}, accepts).any()

from services.pipeline.core.exceptions import (
    DEFAULT_ERROR_STATUS_CODES,
    InvalidJsonBodyError,
    PayloadTooLargeError,
    PipelineError,
    RequestTimeoutError,
    SchemaValidationError,
    UnsupportedContentTypeError,
    build_status_table,
    classify_error,
    error_kind,
    error_kinds,
)


class CustomError(Exception):
    pass


class TeapotError(PipelineError):
    default_message = "I'm a teapot"


class TaggedError(Exception):
    kind = "Tagged"


def test_default_messages():
    assert str(RequestTimeoutError()) == "Request timeout"
    assert str(PayloadTooLargeError()) == "Response payload too large"
    assert str(SchemaValidationError()) == "Validation failed"
    assert str(UnsupportedContentTypeError()) == "Content-Type must be application/json"
    assert str(TeapotError("custom")) == "custom"


def test_subclasses_get_their_own_kind():
    assert SchemaValidationError.kind == "SchemaValidationError"
    assert TeapotError.kind == "TeapotError"
    assert error_kind(TeapotError()) == "TeapotError"
    assert error_kind(CustomError()) == "CustomError"
    assert error_kind(TaggedError()) == "Tagged"
    assert error_kind("not an error") is None


def test_schema_validation_error_carries_errors():
    errors = [{"key": "email", "message": "bad"}]
    exc = SchemaValidationError("Validation failed", errors)

    assert exc.errors == errors
    assert SchemaValidationError().errors == []


def test_default_table():
    assert classify_error(SchemaValidationError()) == 400
    assert classify_error(RequestTimeoutError()) == 408
    assert classify_error(PayloadTooLargeError()) == 413


def test_unmatched_errors_are_500():
    assert classify_error(ValueError("boom")) == 500
    assert classify_error(UnsupportedContentTypeError()) == 500
    assert classify_error(InvalidJsonBodyError()) == 500
    assert classify_error("a string") == 500
    assert classify_error(None) == 500


def test_custom_mapping_adds_codes_by_class_or_kind():
    assert classify_error(CustomError("x"), {418: [CustomError]}) == 418
    assert classify_error(CustomError("x"), {418: ["CustomError"]}) == 418
    assert classify_error(TaggedError(), {409: [TaggedError]}) == 409
    assert classify_error(InvalidJsonBodyError(), {400: [SchemaValidationError, InvalidJsonBodyError]}) == 400


def test_custom_mapping_replaces_default_code():
    """An entry for an existing code replaces its kinds instead of extending them."""
    mapping = {408: [CustomError]}

    assert classify_error(CustomError(), mapping) == 408
    assert classify_error(RequestTimeoutError(), mapping) == 500
    assert classify_error(SchemaValidationError(), mapping) == 400


def test_lowest_matching_code_wins():
    mapping = {504: [RequestTimeoutError]}

    assert classify_error(RequestTimeoutError(), mapping) == 408


def test_build_status_table_does_not_mutate_defaults():
    table = build_status_table({400: [CustomError], "422": ["Unprocessable"]})

    assert table[400] == frozenset({"CustomError"})
    assert table[422] == frozenset({"Unprocessable"})
    assert DEFAULT_ERROR_STATUS_CODES[400] == frozenset({"SchemaValidationError"})


class SlowUpstreamError(RequestTimeoutError):
    pass


class FieldRuleError(SchemaValidationError):
    pass


class NotFoundError(Exception):
    pass


class UserNotFoundError(NotFoundError):
    pass


class SubTaggedError(TaggedError):
    pass


def test_error_kinds_follow_the_class_lineage():
    assert error_kinds(SlowUpstreamError()) == (
        "SlowUpstreamError",
        "RequestTimeoutError",
        "PipelineError",
        "Exception",
        "BaseException",
    )
    assert error_kinds(SubTaggedError())[:2] == ("SubTaggedError", "Tagged")
    assert error_kinds("not an error") == ()


def test_subclass_of_builtin_kind_keeps_its_status():
    assert classify_error(SlowUpstreamError()) == 408
    assert classify_error(FieldRuleError(errors=[{"key": "a", "message": "b"}])) == 400


def test_subclass_of_mapped_error_keeps_its_status():
    assert classify_error(UserNotFoundError("x"), {404: [NotFoundError]}) == 404
    assert classify_error(SubTaggedError(), {409: [TaggedError]}) == 409


def test_mapping_a_subclass_does_not_catch_its_parent():
    assert classify_error(NotFoundError("x"), {404: [UserNotFoundError]}) == 500
    assert classify_error(TaggedError(), {409: [SubTaggedError]}) == 500


def test_more_specific_mapping_does_not_override_lower_code():
    mapping = {404: [NotFoundError], 410: [UserNotFoundError]}

    assert classify_error(UserNotFoundError("x"), mapping) == 404

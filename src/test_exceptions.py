import pytest
from certcheck import exceptions


def test_kind_prefixes_message():
    with pytest.raises(exceptions.HostnameMismatchError) as exc:
        raise exceptions.HostnameMismatchError("certificate is not valid for host")
    assert str(exc.value) == "hostname-mismatch: certificate is not valid for host"


def test_kind_only_without_message():
    assert str(exceptions.NoCertsFoundError()) == "no-certs-found"


def test_input_errors_are_value_errors():
    assert isinstance(exceptions.MissingValueError("x"), ValueError)
    assert isinstance(exceptions.InvalidInputError("x"), ValueError)
    assert isinstance(exceptions.TransportError("x"), ConnectionError)


def test_error_kind_through_annotation():
    cause = exceptions.TransportError("reset")
    annotated = exceptions.AnnotatedError(f"{cause}: advice")
    annotated.__cause__ = cause
    assert str(annotated) == "transport-error: reset: advice"
    assert exceptions.error_kind(annotated) == "transport-error"


def test_error_kind_of_foreign_errors():
    assert exceptions.error_kind(None) is None
    assert exceptions.error_kind(ValueError("x")) is None

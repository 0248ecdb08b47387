import pytest
from certcheck import constants
from certcheck.models import CheckConfig, ServiceState, state_from_exit_code


@pytest.mark.parametrize(
    "state, code",
    [
        (ServiceState.OK, constants.STATE_OK_EXIT_CODE),
        (ServiceState.WARNING, constants.STATE_WARNING_EXIT_CODE),
        (ServiceState.CRITICAL, constants.STATE_CRITICAL_EXIT_CODE),
        (ServiceState.UNKNOWN, constants.STATE_UNKNOWN_EXIT_CODE),
        (ServiceState.DEPENDENT, constants.STATE_DEPENDENT_EXIT_CODE),
    ],
)
def test_exit_codes(state, code):
    assert state.exit_code == code
    assert state_from_exit_code(code) == state


def test_unrecognised_exit_code():
    assert state_from_exit_code(42) == ServiceState.UNKNOWN


def test_unknown_most_severe():
    assert max(ServiceState, key=lambda state: state.severity) == ServiceState.UNKNOWN


def test_should_apply_defaults():
    check = CheckConfig(server="www.example.com")
    assert check.should_apply(constants.VALIDATION_KEYWORD_EXPIRATION)
    assert check.should_apply(constants.VALIDATION_KEYWORD_HOSTNAME)
    assert not check.should_apply(constants.VALIDATION_KEYWORD_SANS)
    assert not check.should_apply(constants.VALIDATION_KEYWORD_CHAIN_ORDER)
    assert not check.should_apply(constants.VALIDATION_KEYWORD_ROOT)


def test_sans_entries_stripped():
    check = CheckConfig(filename="chain.pem", sans_entries=[" www.example.com ", ""])
    assert check.sans_entries == ["www.example.com"]
    assert check.should_apply(constants.VALIDATION_KEYWORD_SANS)

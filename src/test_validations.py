import pytest

from certcheck import constants
from certcheck.exceptions import (
    ExpiredCertFoundError,
    ExpiringCertFoundError,
    HostnameMismatchError,
    IncompleteChainError,
    InvalidInputError,
    MisorderedChainError,
    MissingValueError,
    RootPresentInChainError,
    SANsMismatchError,
    WeakSignatureError,
)
from certcheck.models import ServiceState, ValidationOptions
from certcheck.validations.chain_order import validate_chain_order
from certcheck.validations.expiration import validate_expiration
from certcheck.validations.hostname import validate_hostname
from certcheck.validations.root import validate_root
from certcheck.validations.sans import validate_sans_list
from certcheck.validations.weak_signature import validate_weak_signature


class TestHostname:
    def test_match(self, make_chain):
        result = validate_hostname(make_chain(), server="www.example.com")
        assert result.error is None
        assert result.state == ServiceState.OK
        assert result.status() == (
            'hostname validation using value "www.example.com" successful for leaf cert'
        )

    def test_dns_name_wins_over_server(self, make_chain):
        result = validate_hostname(make_chain(), server="192.0.2.1", dns_name="example.com")
        assert result.hostname == "example.com"
        assert result.is_succeeded

    def test_mismatch(self, make_chain):
        result = validate_hostname(make_chain(sans=("foo.example.com",)), server="bar.example.com")
        assert isinstance(result.error, HostnameMismatchError)
        assert result.state == ServiceState.CRITICAL
        assert result.priority == constants.BASELINE_PRIORITY_HOSTNAME + constants.PRIORITY_MODIFIER_MAXIMUM
        assert constants.HOSTNAME_MISMATCH_ADVICE in result.report()

    def test_common_name_not_consulted(self, make_chain):
        result = validate_hostname(make_chain(sans=()), server="www.example.com")
        assert result.is_failed

    def test_empty_sans_ignored_on_request(self, make_chain):
        options = ValidationOptions(ignore_hostname_verification_if_empty_sans=True)
        result = validate_hostname(make_chain(sans=()), server="www.example.com", options=options)
        assert result.ignored
        assert result.state == ServiceState.OK
        assert result.status().endswith("as requested for empty SANs list")
        assert result.status_detail() == constants.HOSTNAME_EMPTY_SANS_NOTE

    def test_missing_hostname(self, make_chain):
        result = validate_hostname(make_chain())
        assert isinstance(result.error, MissingValueError)
        assert result.state == ServiceState.UNKNOWN

    def test_empty_chain(self):
        result = validate_hostname([], server="www.example.com")
        assert isinstance(result.error, MissingValueError)


class TestSANsList:
    def test_all_present(self, make_chain):
        result = validate_sans_list(make_chain(), ["WWW.example.com"])
        assert result.error is None
        assert result.unexpected == ["example.com"]
        assert result.status() == (
            "sans list validation successful: expected and confirmed (1) SANs entries present for leaf cert"
        )

    def test_missing_entry(self, make_chain):
        result = validate_sans_list(make_chain(), ["www.example.com", "api.example.com"])
        assert isinstance(result.error, SANsMismatchError)
        assert result.state == ServiceState.CRITICAL
        assert result.missing == ["api.example.com"]
        assert "missing: [api.example.com]" in result.report()

    def test_skip_keyword(self, make_chain):
        result = validate_sans_list(make_chain(), [constants.SKIP_SANS_CHECKS_KEYWORD])
        assert result.ignored
        assert result.skipped
        assert result.state == ServiceState.OK

    def test_empty_required(self, make_chain):
        result = validate_sans_list(make_chain(), [])
        assert isinstance(result.error, MissingValueError)
        assert result.state == ServiceState.UNKNOWN

    def test_ignored_failure_is_ok(self, make_chain):
        options = ValidationOptions(ignore_validation_result_sans=True)
        result = validate_sans_list(make_chain(), ["nope.example.com"], options)
        assert result.error is not None
        assert result.state == ServiceState.OK
        assert result.validation_status() == constants.VALIDATION_STATUS_IGNORED


class TestExpiration:
    def test_valid_chain(self, make_chain, now):
        result = validate_expiration(make_chain(include_root=True), 15, 30, now=now)
        assert result.error is None
        assert result.overview() == "[EXPIRED: 0, EXPIRING: 0, OK: 3]"
        assert result.status() == (
            'expiration validation successful; leaf cert "www.example.com" expires next '
            "in 90d 0h (until 2025-04-01 00:00:00 +0000 UTC)"
        )

    def test_zero_thresholds(self, make_chain, now):
        assert isinstance(validate_expiration(make_chain(), 0, 30, now=now).error, MissingValueError)
        result = validate_expiration(make_chain(), 15, 0, now=now)
        assert isinstance(result.error, MissingValueError)
        assert result.state == ServiceState.UNKNOWN

    def test_critical_above_warning(self, make_chain, now):
        result = validate_expiration(make_chain(), 30, 15, now=now)
        assert isinstance(result.error, InvalidInputError)
        assert result.state == ServiceState.UNKNOWN

    def test_expiring_leaf_warning(self, make_chain, now):
        result = validate_expiration(make_chain(leaf_days=22), 15, 30, now=now)
        assert isinstance(result.error, ExpiringCertFoundError)
        assert result.state == ServiceState.WARNING
        assert result.overview() == "[EXPIRED: 0, EXPIRING: 1, OK: 1]"

    def test_expiring_leaf_within_critical(self, make_chain, now):
        result = validate_expiration(make_chain(leaf_days=10), 15, 30, now=now)
        assert result.state == ServiceState.CRITICAL

    def test_expired_leaf(self, make_chain, now):
        result = validate_expiration(make_chain(leaf_days=-1), 15, 30, now=now)
        assert isinstance(result.error, ExpiredCertFoundError)
        assert result.state == ServiceState.CRITICAL
        assert "expired 1d 0h ago" in result.status()
        assert result.priority == constants.BASELINE_PRIORITY_EXPIRATION + constants.PRIORITY_MODIFIER_MAXIMUM

    def test_expired_root_warning(self, make_chain, now):
        result = validate_expiration(make_chain(include_root=True, root_days=-1), 15, 30, now=now)
        assert isinstance(result.error, ExpiredCertFoundError)
        assert result.state == ServiceState.WARNING

    def test_expired_root_ignored(self, make_chain, now):
        options = ValidationOptions(ignore_expired_root=True)
        result = validate_expiration(
            make_chain(include_root=True, root_days=-1), 15, 30, options=options, now=now
        )
        assert result.ignored
        assert result.state == ServiceState.OK
        assert "(ignored)" in str(result.error)

    def test_expiring_intermediate_ignored(self, make_chain, now):
        options = ValidationOptions(ignore_expiring_intermediate=True)
        result = validate_expiration(make_chain(intermediate_days=20), 15, 30, options=options, now=now)
        assert result.state == ServiceState.OK
        assert "EXPIRING, IGNORED" in result.report()

    def test_expired_intermediate_critical(self, make_chain, now):
        result = validate_expiration(make_chain(intermediate_days=-3), 15, 30, now=now)
        assert result.state == ServiceState.CRITICAL


class TestChainOrder:
    def test_ordered(self, make_chain):
        result = validate_chain_order(make_chain(include_root=True))
        assert result.error is None
        assert result.overview() == "[ORDERED: 3, MISORDERED: 0, TOTAL: 3]"

    def test_single_cert(self, self_signed):
        result = validate_chain_order([self_signed])
        assert isinstance(result.error, IncompleteChainError)
        assert result.state == ServiceState.WARNING
        assert "replace the leaf-self-signed certificate" in result.report()

    def test_misordered(self, make_chain):
        leaf, intermediate, root = make_chain(include_root=True)
        result = validate_chain_order([leaf, root, intermediate])
        assert isinstance(result.error, MisorderedChainError)
        assert result.num_misordered == 2
        assert result.status() == "chain order validation failed: 2 certs misordered"
        assert "Recommended chain order:" in result.report()


class TestRoot:
    def test_no_root(self, make_chain):
        assert validate_root(make_chain()).error is None

    def test_root_present(self, make_chain):
        result = validate_root(make_chain(include_root=True))
        assert isinstance(result.error, RootPresentInChainError)
        assert result.state == ServiceState.WARNING
        assert result.num_root_certs == 1


class TestWeakSignature:
    def test_strong(self, make_chain):
        result = validate_weak_signature(make_chain())
        assert result.error is None
        assert result.num_evaluated == 2

    def test_sha1_leaf(self, weak_certs):
        chain = [weak_certs["leaf-sha1"], weak_certs["intermediate"]]
        result = validate_weak_signature(chain)
        assert isinstance(result.error, WeakSignatureError)
        assert result.state == ServiceState.CRITICAL
        assert "ecdsa-with-SHA1" in result.report()

    def test_ignored(self, weak_certs):
        options = ValidationOptions(ignore_validation_result_weak_signature=True)
        chain = [weak_certs["leaf-sha1"], weak_certs["intermediate"]]
        result = validate_weak_signature(chain, options)
        assert result.ignored
        assert result.state == ServiceState.OK

    def test_sha1_root_exempt(self, weak_certs):
        chain = [weak_certs["leaf-sha256"], weak_certs["intermediate"], weak_certs["root-sha1"]]
        assert weak_certs["root-sha1"].has_weak_signature_algorithm
        result = validate_weak_signature(chain)
        assert result.error is None
        assert result.num_evaluated == 2
        assert result.state == ServiceState.OK


@pytest.mark.parametrize(
    "check",
    [
        lambda chain: validate_hostname(chain, server="www.example.com"),
        lambda chain: validate_sans_list(chain, ["www.example.com"]),
        lambda chain: validate_expiration(chain, 15, 30),
        validate_chain_order,
        validate_root,
        validate_weak_signature,
    ],
    ids=["hostname", "sans", "expiration", "chain-order", "root", "weak-signature"],
)
def test_empty_chain(check):
    result = check([])
    assert isinstance(result.error, MissingValueError)
    assert result.state == ServiceState.UNKNOWN

import pytest

from certcheck import chain as chain_utils
from certcheck.certificate import Certificate
from certcheck.chain import parse_pem_chain
from certcheck.exceptions import CertificateParseError
from certcheck.models import ChainPosition


def test_positions(make_chain):
    chain = make_chain(include_root=True)
    assert chain_utils.positions(chain) == [
        ChainPosition.LEAF,
        ChainPosition.INTERMEDIATE,
        ChainPosition.ROOT,
    ]
    assert chain_utils.num_leaf_certs(chain) == 1
    assert chain_utils.num_intermediate_certs(chain) == 1
    assert chain_utils.num_root_certs(chain) == 1
    assert chain_utils.num_unknown_certs(chain) == 0


def test_positions_ignore_order(make_chain):
    leaf, intermediate, root = make_chain(include_root=True)
    assert chain_utils.positions([root, leaf, intermediate]) == [
        ChainPosition.ROOT,
        ChainPosition.LEAF,
        ChainPosition.INTERMEDIATE,
    ]
    assert chain_utils.leaf_cert([root, leaf, intermediate]) == leaf


def test_self_signed_leaf(self_signed):
    assert chain_utils.positions([self_signed]) == [ChainPosition.LEAF_SELF_SIGNED]
    assert chain_utils.leaf_cert([self_signed]) == self_signed


def test_next_to_expire(make_chain, now):
    chain = make_chain(leaf_days=200, intermediate_days=100)
    assert chain_utils.next_to_expire(chain, now=now) == chain[1]


def test_next_to_expire_skips_expired(make_chain, now):
    chain = make_chain(leaf_days=-5, intermediate_days=100)
    assert chain_utils.next_to_expire(chain, now=now) == chain[0]
    assert chain_utils.next_to_expire(chain, exclude_expired=True, now=now) == chain[1]
    assert chain_utils.next_to_expire([], now=now) is None


def test_expired_and_expiring_counts(make_chain, now):
    chain = make_chain(leaf_days=-1, intermediate_days=20, include_root=True)
    critical, warning = chain_utils.threshold_dates(15, 30, now)
    assert chain_utils.has_expired_cert(chain, now)
    assert chain_utils.num_expired_certs(chain, now) == 1
    assert chain_utils.num_expiring_certs(chain, critical, warning, now) == 1


def test_order_predicates(make_chain):
    leaf, intermediate, root = make_chain(include_root=True)
    assert not chain_utils.has_misordered_certs([leaf, intermediate, root])
    assert chain_utils.has_misordered_certs([leaf, root, intermediate])
    assert chain_utils.recommended_order([root, intermediate, leaf]) == [leaf, intermediate, root]
    assert chain_utils.has_duplicate_certs([leaf, leaf])


def test_parse_pem_chain(make_chain, pem_file):
    chain = make_chain()
    with open(pem_file(chain), "rb") as handle:
        parsed, leftover = parse_pem_chain(handle.read())
    assert parsed == chain
    assert leftover == b""


def test_parse_pem_chain_leftover(make_chain, pem_file):
    with open(pem_file(make_chain(), trailer=b"\ngarbage after the chain\n"), "rb") as handle:
        parsed, leftover = parse_pem_chain(handle.read())
    assert len(parsed) == 2
    assert leftover == b"garbage after the chain"


def test_parse_der(self_signed):
    parsed, leftover = parse_pem_chain(self_signed.der)
    assert parsed == [self_signed]
    assert leftover == b""


def test_parse_empty():
    assert parse_pem_chain(b"  \n") == ([], b"")


def test_parse_garbage():
    with pytest.raises(CertificateParseError):
        parse_pem_chain(b"not a certificate")


def test_certificate_accessors(make_chain, now):
    leaf = make_chain(leaf_days=90)[0]
    assert isinstance(leaf, Certificate)
    assert leaf.subject_common_name == "www.example.com"
    assert leaf.issuer_common_name == "Example Intermediate CA"
    assert leaf.san == ["www.example.com", "example.com"]
    assert leaf.display_name == "www.example.com"
    assert not leaf.has_weak_signature_algorithm
    assert int(leaf.expires_in_days(now)) == 90
    assert leaf.max_lifespan_days() == 100
    assert leaf.life_remaining_percent(now) == 90
    assert not leaf.is_expired(now)


def test_weak_signature_accessors(weak_certs):
    leaf = weak_certs["leaf-sha1"]
    assert leaf.subject_common_name == "weak.example.com"
    assert leaf.issuer_common_name == "Weak Intermediate CA"
    assert leaf.has_weak_signature_algorithm
    assert leaf.signature_algorithm == "ecdsa-with-SHA1"
    assert not weak_certs["leaf-sha256"].has_weak_signature_algorithm

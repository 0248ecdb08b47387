"""Chain classification and chain-wide predicates

A chain is an ordered list of Certificate values as presented by a peer or
read from a file. Positions are computed against the chain using
(chain, index) pairs, no linked structure is built.
"""
import re
import logging
from datetime import datetime, timedelta
from typing import Union

from cryptography import x509

from . import util
from .certificate import Certificate
from .exceptions import CertificateParseError
from .models import ChainPosition

__module__ = "certcheck.chain"

logger = logging.getLogger(__name__)

PEM_BLOCK_PATTERN = re.compile(
    rb"-----BEGIN CERTIFICATE-----\s.+?\s-----END CERTIFICATE-----", re.DOTALL
)
_POSITION_ORDER = {
    ChainPosition.LEAF: 0,
    ChainPosition.LEAF_SELF_SIGNED: 0,
    ChainPosition.INTERMEDIATE: 1,
    ChainPosition.ROOT: 2,
    ChainPosition.UNKNOWN: 3,
}


def _signs_another(index: int, chain: list[Certificate]) -> bool:
    subject = chain[index].subject_name
    der = chain[index].der
    for other_index, other in enumerate(chain):
        if other_index == index or other.der == der:
            continue
        if other.issuer_name == subject:
            return True
    return False


def position_at(index: int, chain: list[Certificate]) -> ChainPosition:
    cert = chain[index]
    signs_another = _signs_another(index, chain)
    if cert.is_self_issued and signs_another:
        return ChainPosition.ROOT
    if cert.is_self_issued:
        return ChainPosition.LEAF_SELF_SIGNED
    if not signs_another:
        return ChainPosition.LEAF
    if signs_another and not cert.is_self_issued:
        return ChainPosition.INTERMEDIATE
    return ChainPosition.UNKNOWN


def chain_position(cert: Certificate, chain: list[Certificate]) -> ChainPosition:
    for index, candidate in enumerate(chain):
        if candidate == cert:
            return position_at(index, chain)
    return ChainPosition.UNKNOWN


def positions(chain: list[Certificate]) -> list[ChainPosition]:
    return [position_at(index, chain) for index in range(len(chain))]


def certs_at(chain: list[Certificate], *wanted: ChainPosition) -> list[Certificate]:
    return [
        cert for index, cert in enumerate(chain) if position_at(index, chain) in wanted
    ]


def leaf_certs(chain: list[Certificate]) -> list[Certificate]:
    return certs_at(chain, ChainPosition.LEAF, ChainPosition.LEAF_SELF_SIGNED)


def intermediate_certs(chain: list[Certificate]) -> list[Certificate]:
    return certs_at(chain, ChainPosition.INTERMEDIATE)


def root_certs(chain: list[Certificate]) -> list[Certificate]:
    return certs_at(chain, ChainPosition.ROOT)


def non_root_certs(chain: list[Certificate]) -> list[Certificate]:
    return [
        cert
        for index, cert in enumerate(chain)
        if position_at(index, chain) != ChainPosition.ROOT
    ]


def leaf_index(chain: list[Certificate]) -> Union[int, None]:
    for index in range(len(chain)):
        if position_at(index, chain) in (
            ChainPosition.LEAF,
            ChainPosition.LEAF_SELF_SIGNED,
        ):
            return index
    return None


def leaf_cert(chain: list[Certificate]) -> Union[Certificate, None]:
    index = leaf_index(chain)
    return None if index is None else chain[index]


def num_leaf_certs(chain: list[Certificate]) -> int:
    return len(leaf_certs(chain))


def num_intermediate_certs(chain: list[Certificate]) -> int:
    return len(intermediate_certs(chain))


def num_root_certs(chain: list[Certificate]) -> int:
    return len(root_certs(chain))


def num_unknown_certs(chain: list[Certificate]) -> int:
    return len(certs_at(chain, ChainPosition.UNKNOWN))


def threshold_dates(
    age_critical: int, age_warning: int, now: datetime = None
) -> tuple[datetime, datetime]:
    """Returns (critical, warning) dates counted in whole days from now"""
    now = util.as_utc(now) if now else util.utcnow()
    return now + timedelta(days=age_critical), now + timedelta(days=age_warning)


def has_expired_cert(chain: list[Certificate], now: datetime = None) -> bool:
    return any(cert.is_expired(now) for cert in chain)


def num_expired_certs(chain: list[Certificate], now: datetime = None) -> int:
    return len([cert for cert in chain if cert.is_expired(now)])


def num_expiring_certs(
    chain: list[Certificate],
    critical: datetime,
    warning: datetime,
    now: datetime = None,
) -> int:
    return len([cert for cert in chain if cert.is_expiring(critical, warning, now)])


def next_to_expire(
    chain: list[Certificate],
    exclude_expired: bool = False,
    now: datetime = None,
    reference_chain: list[Certificate] = None,
) -> Union[Certificate, None]:
    """Smallest NotAfter wins, ties go to the leaf then intermediate then root

    reference_chain is the chain positions are computed against when chain
    is a filtered subset of it
    """
    if not chain:
        return None
    reference_chain = reference_chain or chain
    ordered = sorted(
        chain,
        key=lambda cert: (
            cert.not_after,
            _POSITION_ORDER[chain_position(cert, reference_chain)],
        ),
    )
    if exclude_expired:
        for cert in ordered:
            if not cert.is_expired(now):
                return cert
    return ordered[0]


def is_ordered_pair(cert: Certificate, next_cert: Certificate) -> bool:
    return cert.is_directly_issued_by(next_cert)


def has_misordered_certs(chain: list[Certificate]) -> bool:
    return any(
        not is_ordered_pair(chain[index], chain[index + 1])
        for index in range(len(chain) - 1)
    )


def has_duplicate_certs(chain: list[Certificate]) -> bool:
    return len({cert.der for cert in chain}) != len(chain)


def recommended_order(chain: list[Certificate]) -> list[Certificate]:
    """Leaf first, each following certificate being the issuer of the one before it

    Certificates which cannot be placed on the issuance path are appended
    in their original order.
    """
    remaining = list(chain)
    start = leaf_cert(chain)
    if start is None:
        return remaining
    ordered = [start]
    remaining.remove(start)
    while remaining:
        current = ordered[-1]
        if current.is_self_issued:
            break
        issuer = next(
            (cert for cert in remaining if cert.subject_name == current.issuer_name),
            None,
        )
        if issuer is None:
            break
        ordered.append(issuer)
        remaining.remove(issuer)
    return ordered + remaining


def parse_pem_chain(data: bytes) -> tuple[list[Certificate], bytes]:
    """Parses every PEM certificate block in data

    Returns the chain and any non-whitespace bytes found outside the
    certificate blocks. Data holding no PEM block at all is tried as a
    single DER certificate.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    blocks = PEM_BLOCK_PATTERN.findall(data)
    if not blocks:
        if not data.strip():
            return [], b""
        try:
            return [Certificate(x509.load_der_x509_certificate(data))], b""
        except ValueError as ex:
            raise CertificateParseError(
                f"no PEM certificate blocks found and input is not DER encoded: {ex}"
            ) from ex
    chain = []
    for number, block in enumerate(blocks, start=1):
        try:
            chain.append(Certificate(x509.load_pem_x509_certificate(block)))
        except ValueError as ex:
            raise CertificateParseError(
                f"failed to parse certificate {number} of {len(blocks)}: {ex}"
            ) from ex
    leftover = PEM_BLOCK_PATTERN.sub(b"", data).strip()
    logger.debug(f"parsed {len(chain)} certificates, {len(leftover)} leftover bytes")
    return chain, leftover

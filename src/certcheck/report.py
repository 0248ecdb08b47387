import logging
from datetime import datetime

from . import constants, util, chain as chain_utils
from .certificate import Certificate
from .models import ChainPosition, ValidationOptions

__module__ = "certcheck.report"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


def should_cert_expiration_be_ignored(
    cert: Certificate,
    chain: list[Certificate],
    options: ValidationOptions,
    critical: datetime,
    warning: datetime,
    now: datetime = None,
) -> bool:
    if options.ignore_validation_result_expiration:
        return True
    position = chain_utils.chain_position(cert, chain)
    expired = cert.is_expired(now)
    expiring = cert.is_expiring(critical, warning, now)
    if position == ChainPosition.ROOT:
        if (expired and options.ignore_expired_root) or (
            expiring and options.ignore_expiring_root
        ):
            return True
    if position == ChainPosition.INTERMEDIATE:
        if (expired and options.ignore_expired_intermediate) or (
            expiring and options.ignore_expiring_intermediate
        ):
            return True
    return False


def expiration_status(
    cert: Certificate,
    critical: datetime,
    warning: datetime,
    ignore_expiration: bool = False,
    now: datetime = None,
) -> str:
    expires = util.formatted_expiration(cert.not_after, now)
    life_remaining = f" ({cert.life_remaining_percent(now)}%)"
    if cert.is_expired(now):
        label = "EXPIRED, IGNORED" if ignore_expiration else "EXPIRED"
    elif cert.not_after < util.as_utc(critical):
        label = "EXPIRING, IGNORED" if ignore_expiration else constants.STATE_CRITICAL_LABEL
    elif cert.not_after < util.as_utc(warning):
        label = "EXPIRING, IGNORED" if ignore_expiration else constants.STATE_WARNING_LABEL
    else:
        label = constants.STATE_OK_LABEL
    return f"[{label}] {expires}{life_remaining}"


def weak_signature_status(cert: Certificate, chain: list[Certificate]) -> str:
    is_root = chain_utils.chain_position(cert, chain) == ChainPosition.ROOT
    if cert.has_weak_signature_algorithm:
        label = "WEAK, IGNORED" if is_root else "WEAK"
    else:
        label = "IGNORED" if is_root else "OK"
    return f"[{label}] {cert.signature_algorithm}"


def sans_entries_line(cert: Certificate, omit_sans_entries: bool = False) -> str:
    sans = cert.san
    if not sans:
        return "SANs entries: None"
    if omit_sans_entries:
        return f"SANs entries ({len(sans)}): Omitted by request"
    return f"SANs entries ({len(sans)}): [{' '.join(sans)}]"


def generate_chain_report(
    chain: list[Certificate],
    critical: datetime,
    warning: datetime,
    verbose: bool = False,
    options: ValidationOptions = None,
    omit_sans_entries: bool = False,
    now: datetime = None,
) -> str:
    """Per certificate detail block, one block per certificate in chain order"""
    options = options or ValidationOptions()
    blocks = []
    for index, cert in enumerate(chain):
        position = chain_utils.position_at(index, chain)
        ignore = should_cert_expiration_be_ignored(
            cert, chain, options, critical, warning, now
        )
        lines = [
            f"Certificate {index + 1} of {len(chain)} ({position.value}):",
            f"\tName: {cert.subject}",
            f"\t{sans_entries_line(cert, omit_sans_entries)}",
        ]
        if verbose:
            lines.append(
                f"\tKeyID: {util.bytes_to_delimited_hex(cert.subject_key_identifier)}"
            )
        lines.append(f"\tIssuer: {cert.issuer}")
        if verbose:
            lines += [
                f"\tIssuerKeyID: {util.bytes_to_delimited_hex(cert.authority_key_identifier)}",
                f"\tFingerprint (SHA-1): {cert.sha1_fingerprint}",
                f"\tFingerprint (SHA-256): {cert.sha256_fingerprint}",
                f"\tFingerprint (SHA-512): {cert.sha512_fingerprint}",
            ]
        lines += [
            f"\tSerial: {cert.serial_number_hex}",
            f"\tIssued On: {util.format_date(cert.not_before)}",
            f"\tExpiration: {util.format_date(cert.not_after)}",
            f"\tSignature Algorithm: {weak_signature_status(cert, chain)}",
            f"\tStatus: {expiration_status(cert, critical, warning, ignore, now)}",
        ]
        blocks.append(EOL.join(lines))
    return (EOL + EOL).join(blocks)

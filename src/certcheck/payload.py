import logging
from datetime import datetime

from . import constants, util, chain as chain_utils
from .certificate import Certificate
from .exceptions import MissingValueError
from .models import (
    CertChainPayload,
    ChainPosition,
    CheckConfig,
    PayloadCertificate,
    PayloadCertificateStatus,
    PayloadChainIssues,
    PayloadServer,
    ServiceState,
)
from .report import expiration_status

__module__ = "certcheck.payload"

logger = logging.getLogger(__name__)


def payload_certificate(
    cert: Certificate,
    chain: list[Certificate],
    critical: datetime,
    warning: datetime,
    omit_sans_entries: bool = False,
    now: datetime = None,
) -> PayloadCertificate:
    expired = cert.is_expired(now)
    expiring = cert.is_expiring(critical, warning, now)
    days_remaining = round(cert.expires_in_days(now), 2)
    return PayloadCertificate(
        subject=cert.subject,
        common_name=cert.subject_common_name or None,
        sans_entries=None if omit_sans_entries else cert.san,
        sans_entries_count=len(cert.san),
        issuer=cert.issuer,
        issuer_short=cert.issuer_common_name or None,
        serial_number=cert.serial_number_hex,
        issued_on=cert.not_before,
        expires_on=cert.not_after,
        days_remaining=days_remaining,
        days_remaining_truncated=int(days_remaining),
        lifetime_remaining_percent=cert.life_remaining_percent(now),
        validity_period_days=cert.max_lifespan_days(),
        summary=expiration_status(cert, critical, warning, now=now),
        status=PayloadCertificateStatus(
            ok=not expired and not expiring, expiring=expiring, expired=expired
        ),
        signature_algorithm=cert.signature_algorithm,
        type=chain_utils.chain_position(cert, chain),
    )


def chain_issues(
    chain: list[Certificate], config: CheckConfig, now: datetime = None
) -> PayloadChainIssues:
    leaf = chain_utils.leaf_cert(chain)
    host = config.dns_name or config.server
    hostname_mismatch = False
    if host and leaf is not None:
        hostname_mismatch = not util.match_hostname(host, leaf.san, leaf.san_ip_addresses)
    return PayloadChainIssues(
        missing_intermediate_certs=chain_utils.num_intermediate_certs(chain) == 0,
        missing_sans_entries=leaf is not None and not leaf.san,
        duplicate_certs=chain_utils.has_duplicate_certs(chain),
        misordered_certs=chain_utils.has_misordered_certs(chain),
        expired_certs=chain_utils.has_expired_cert(chain, now),
        hostname_mismatch=hostname_mismatch,
        self_signed_leaf_cert=ChainPosition.LEAF_SELF_SIGNED in chain_utils.positions(chain),
        weak_signature_algorithm=any(
            cert.has_weak_signature_algorithm for cert in chain_utils.non_root_certs(chain)
        ),
    )


def cert_chain_payload(
    chain: list[Certificate],
    config: CheckConfig,
    errors: list[BaseException] = None,
    service_state: ServiceState = ServiceState.UNKNOWN,
    ip_address: str = None,
    now: datetime = None,
) -> CertChainPayload:
    """Certificate metadata document deposited in the encoded payload section"""
    if not chain:
        raise MissingValueError("unable to generate payload for an empty certificate chain")
    now = util.as_utc(now) if now else util.utcnow()
    critical, warning = chain_utils.threshold_dates(
        config.age_critical, config.age_warning, now
    )
    return CertChainPayload(
        format_version=constants.PAYLOAD_FORMAT_VERSION,
        errors=[str(err) for err in errors or []],
        cert_chain_original=[cert.pem for cert in chain]
        if config.emit_payload_with_full_chain
        else None,
        cert_chain_subset=[
            payload_certificate(
                cert, chain, critical, warning, config.omit_sans_entries, now
            )
            for cert in chain
        ],
        server=PayloadServer(host_value=config.server, ip_address=ip_address),
        dns_name=config.dns_name,
        tcp_port=None if config.filename else config.port,
        issues=chain_issues(chain, config, now),
        service_state=service_state,
    )


def encode_cert_chain_payload(payload: CertChainPayload) -> str:
    data = payload.model_dump_json(exclude_none=True)
    logger.debug(f"payload JSON is {len(data)} bytes before encoding")
    return data

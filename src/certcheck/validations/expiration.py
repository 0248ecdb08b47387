import logging
from datetime import datetime
from typing import Union

from .. import constants, util, chain as chain_utils
from ..certificate import Certificate
from ..exceptions import (
    ExpiredCertFoundError,
    ExpiringCertFoundError,
    InvalidInputError,
    MissingValueError,
)
from ..models import ChainPosition, ServiceState, ValidationOptions
from ..report import generate_chain_report
from . import ValidationResult, empty_chain_error

__module__ = "certcheck.validations.expiration"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


class ExpirationValidationResult(ValidationResult):
    check_name = constants.CHECK_NAME_EXPIRATION
    base_priority = constants.BASELINE_PRIORITY_EXPIRATION
    failure_state = ServiceState.WARNING

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
        critical_date: datetime = None,
        warning_date: datetime = None,
        now: datetime = None,
        verbose: bool = False,
        omit_sans_entries: bool = False,
        num_expired: int = 0,
        num_expiring: int = 0,
        condition_state: ServiceState = ServiceState.WARNING,
    ) -> None:
        super().__init__(chain, options, error, ignored, priority_modifier)
        self.critical_date = critical_date
        self.warning_date = warning_date
        self.now = now
        self.verbose = verbose
        self.omit_sans_entries = omit_sans_entries
        self.num_expired = num_expired
        self.num_expiring = num_expiring
        self.condition_state = condition_state

    @property
    def num_valid(self) -> int:
        return self.total_certs - self.num_expired - self.num_expiring

    @property
    def has_thresholds(self) -> bool:
        return self.critical_date is not None and self.warning_date is not None

    def failed_state(self) -> ServiceState:
        return self.condition_state

    def filtered_chain(self) -> list[Certificate]:
        """Chain minus the certificates whose expiration was requested to be ignored

        An expired or expiring leaf is returned on its own so that it always
        leads the summary.
        """
        if not self.has_thresholds:
            return list(self.chain)
        filtered = []
        for index, cert in enumerate(self.chain):
            position = chain_utils.position_at(index, self.chain)
            expired = cert.is_expired(self.now)
            expiring = cert.is_expiring(self.critical_date, self.warning_date, self.now)
            if position in (ChainPosition.LEAF, ChainPosition.LEAF_SELF_SIGNED):
                if expired or expiring:
                    return [cert]
            if position == ChainPosition.INTERMEDIATE:
                if expired and self.options.ignore_expired_intermediate:
                    continue
                if expiring and self.options.ignore_expiring_intermediate:
                    continue
            if position == ChainPosition.ROOT:
                if expired and self.options.ignore_expired_root:
                    continue
                if expiring and self.options.ignore_expiring_root:
                    continue
            filtered.append(cert)
        return filtered

    def status(self) -> str:
        if not self.chain or not self.has_thresholds or self.is_input_error:
            return super().status()
        filtered = self.filtered_chain() or list(self.chain)
        cert = chain_utils.next_to_expire(
            filtered, now=self.now, reference_chain=self.chain
        )
        position = chain_utils.chain_position(cert, self.chain).value
        duration = util.format_duration(cert.not_after, self.now)
        prefix = (
            f"{self.name} validation {self.validation_status()}; "
            f'{position} cert "{cert.display_name}"'
        )
        if chain_utils.has_expired_cert(filtered, self.now):
            return f"{prefix} expired {duration} ago (on {util.format_date(cert.not_after)})"
        return f"{prefix} expires next in {duration} (until {util.format_date(cert.not_after)})"

    def overview(self) -> str:
        return "[EXPIRED: %d, EXPIRING: %d, OK: %d]" % (
            self.num_expired,
            self.num_expiring,
            self.num_valid,
        )

    def status_detail(self) -> str:
        if not self.chain or not self.has_thresholds:
            return ""
        return generate_chain_report(
            self.chain,
            self.critical_date,
            self.warning_date,
            verbose=self.verbose,
            options=self.options,
            omit_sans_entries=self.omit_sans_entries,
            now=self.now,
        )

    def report(self) -> str:
        detail = self.status_detail()
        if not detail:
            return str(self)
        if self.ignored:
            return (
                f"{self.name} validation {self.validation_status()}: "
                f"{self.num_expired} expired certificates, "
                f"{self.num_expiring} expiring certificates{EOL}{EOL}{detail}"
            )
        return f"{self.status()}{EOL}{EOL}{detail}"

    def counters(self) -> dict[str, int]:
        counters = super().counters()
        counters.update(
            {
                "expired_certificates": self.num_expired,
                "expiring_certificates": self.num_expiring,
                "valid_certificates": self.num_valid,
            }
        )
        return counters


def _expiring_state(
    certs: list[Certificate], critical: datetime, now: datetime
) -> ServiceState:
    if any(
        not cert.is_expired(now) and cert.not_after < critical for cert in certs
    ):
        return ServiceState.CRITICAL
    return ServiceState.WARNING


def validate_expiration(
    chain: list[Certificate],
    age_critical: int,
    age_warning: int,
    verbose: bool = False,
    omit_sans_entries: bool = False,
    options: ValidationOptions = None,
    now: datetime = None,
) -> ExpirationValidationResult:
    """Evaluates every certificate against now + age_critical / age_warning days

    The winning condition decides the error kind and priority. State is the
    most severe of the conditions left after position-scoped ignores, roots
    never exceed WARNING.
    """
    options = options or ValidationOptions()
    now = util.as_utc(now) if now else util.utcnow()
    ignored = options.ignore_validation_result_expiration

    def input_error(error: Exception) -> ExpirationValidationResult:
        return ExpirationValidationResult(
            chain,
            options,
            error=error,
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
            now=now,
        )

    if not chain:
        return input_error(empty_chain_error())
    if age_critical == 0:
        return input_error(
            MissingValueError(
                "required CRITICAL certificate age threshold (in days) is required"
                " for expiration validation"
            )
        )
    if age_warning == 0:
        return input_error(
            MissingValueError(
                "required WARNING certificate age threshold (in days) is required"
                " for expiration validation"
            )
        )
    if age_critical > age_warning:
        return input_error(
            InvalidInputError(
                f"CRITICAL threshold ({age_critical}d) is greater than"
                f" WARNING threshold ({age_warning}d)"
            )
        )

    critical, warning = chain_utils.threshold_dates(age_critical, age_warning, now)
    leafs = chain_utils.leaf_certs(chain)
    intermediates = chain_utils.intermediate_certs(chain)
    roots = chain_utils.root_certs(chain)

    def expiring(certs):
        return [cert for cert in certs if cert.is_expiring(critical, warning, now)]

    def expired(certs):
        return [cert for cert in certs if cert.is_expired(now)]

    expired_leafs, expiring_leafs = expired(leafs), expiring(leafs)
    expired_intermediates, expiring_intermediates = (
        expired(intermediates),
        expiring(intermediates),
    )
    expired_roots, expiring_roots = expired(roots), expiring(roots)

    # conditions left once position-scoped ignores are applied, with their state
    conditions = []
    if expired_leafs:
        conditions.append(ServiceState.CRITICAL)
    if expiring_leafs:
        conditions.append(_expiring_state(expiring_leafs, critical, now))
    if expiring_intermediates and not options.ignore_expiring_intermediate:
        conditions.append(_expiring_state(expiring_intermediates, critical, now))
    if expiring_roots and not options.ignore_expiring_root:
        conditions.append(ServiceState.WARNING)
    if expired_intermediates and not options.ignore_expired_intermediate:
        conditions.append(ServiceState.CRITICAL)
    if expired_roots and not options.ignore_expired_root:
        conditions.append(ServiceState.WARNING)
    condition_state = max(
        conditions, key=lambda state: state.severity, default=ServiceState.OK
    )

    failed = "expiration validation failed"
    error = None
    priority_modifier = constants.PRIORITY_MODIFIER_BASELINE
    if expired_leafs:
        error = ExpiredCertFoundError(f"{failed}: expired leaf certificate found")
        priority_modifier = constants.PRIORITY_MODIFIER_MAXIMUM
    elif expiring_leafs:
        error = ExpiringCertFoundError(f"{failed}: expiring leaf certificate found")
        priority_modifier = constants.PRIORITY_MODIFIER_MINIMUM
    elif expiring_intermediates and not options.ignore_expiring_intermediate:
        error = ExpiringCertFoundError(
            f"{failed}: expiring intermediate certificate found"
        )
        priority_modifier = constants.PRIORITY_MODIFIER_MINIMUM
    elif expiring_roots and not options.ignore_expiring_root:
        error = ExpiringCertFoundError(f"{failed}: expiring root certificate found")
        priority_modifier = constants.PRIORITY_MODIFIER_MINIMUM
    elif expired_intermediates and not options.ignore_expired_intermediate:
        error = ExpiredCertFoundError(
            f"{failed}: expired intermediate certificate found"
        )
        priority_modifier = constants.PRIORITY_MODIFIER_MAXIMUM
    elif expired_roots and not options.ignore_expired_root:
        error = ExpiredCertFoundError(f"{failed}: expired root certificate found")
        priority_modifier = constants.PRIORITY_MODIFIER_MINIMUM
    elif expired_intermediates:
        error = ExpiredCertFoundError(
            f"{failed}: expired intermediate certificate found (ignored)"
        )
        ignored = True
    elif expired_roots:
        error = ExpiredCertFoundError(
            f"{failed}: expired root certificate found (ignored)"
        )
        ignored = True
    elif expiring_intermediates:
        error = ExpiringCertFoundError(
            f"{failed}: expiring intermediate certificate found (ignored)"
        )
        ignored = True
    elif expiring_roots:
        error = ExpiringCertFoundError(
            f"{failed}: expiring root certificate found (ignored)"
        )
        ignored = True
    if options.ignore_validation_result_expiration:
        priority_modifier = constants.PRIORITY_MODIFIER_BASELINE

    result = ExpirationValidationResult(
        chain,
        options,
        error=error,
        ignored=ignored,
        priority_modifier=priority_modifier,
        critical_date=critical,
        warning_date=warning,
        now=now,
        verbose=verbose,
        omit_sans_entries=omit_sans_entries,
        num_expired=chain_utils.num_expired_certs(chain, now),
        num_expiring=chain_utils.num_expiring_certs(chain, critical, warning, now),
        condition_state=condition_state,
    )
    logger.debug(f"{result!r} {result.counters()}")
    return result

import logging
from typing import Union

from .. import constants, chain as chain_utils, util
from ..certificate import Certificate
from ..exceptions import HostnameMismatchError, MissingValueError
from ..models import ServiceState, ValidationOptions
from . import ValidationResult, empty_chain_error

__module__ = "certcheck.validations.hostname"

logger = logging.getLogger(__name__)


class HostnameValidationResult(ValidationResult):
    check_name = constants.CHECK_NAME_HOSTNAME
    base_priority = constants.BASELINE_PRIORITY_HOSTNAME
    failure_state = ServiceState.CRITICAL

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
        leaf: Union[Certificate, None] = None,
        hostname: str = "",
        ignored_for_empty_sans: bool = False,
    ) -> None:
        super().__init__(chain, options, error, ignored, priority_modifier)
        self.leaf = leaf
        self.hostname = hostname
        self.ignored_for_empty_sans = ignored_for_empty_sans

    @property
    def leaf_position(self) -> str:
        if self.leaf is None:
            return "unknown"
        return chain_utils.chain_position(self.leaf, self.chain).value

    def status(self) -> str:
        if self.leaf is None or self.is_input_error:
            return super().status()
        text = (
            f'{self.name} validation using value "{self.hostname}" '
            f"{self.validation_status()} for {self.leaf_position} cert"
        )
        if self.ignored and self.ignored_for_empty_sans:
            text += " as requested for empty SANs list"
        return text

    def status_detail(self) -> str:
        if self.ignored and self.ignored_for_empty_sans:
            return constants.HOSTNAME_EMPTY_SANS_NOTE
        if self.is_failed and not self.is_input_error:
            return constants.HOSTNAME_MISMATCH_ADVICE
        return ""

    def counters(self) -> dict[str, int]:
        counters = super().counters()
        counters["sans_entries"] = len(self.leaf.san) if self.leaf else 0
        return counters


def validate_hostname(
    chain: list[Certificate],
    server: str = None,
    dns_name: str = None,
    options: ValidationOptions = None,
) -> HostnameValidationResult:
    """Verifies the leaf selected by the classifier against the DNS name, or the server value

    Only the SANs entries of the leaf are consulted, a certificate relying on
    its CommonName never matches.
    """
    options = options or ValidationOptions()
    ignored = options.ignore_validation_result_hostname
    hostname = (dns_name or "").strip() or (server or "").strip()
    if not chain:
        return HostnameValidationResult(
            chain,
            options,
            error=empty_chain_error(),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
            hostname=hostname,
        )
    if not hostname:
        return HostnameValidationResult(
            chain,
            options,
            error=MissingValueError(
                "server or dns name values are required for hostname verification"
            ),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
        )

    leaf = chain_utils.leaf_cert(chain) or chain[0]
    dns_names = leaf.san
    logger.debug(f"verifying {hostname} against SANs {dns_names}")
    if util.match_hostname(hostname, dns_names, leaf.san_ip_addresses):
        return HostnameValidationResult(
            chain, options, ignored=ignored, leaf=leaf, hostname=hostname
        )

    error = HostnameMismatchError(
        f'hostname verification failed: certificate is not valid for "{hostname}"'
    )
    if not dns_names and options.ignore_hostname_verification_if_empty_sans:
        return HostnameValidationResult(
            chain,
            options,
            error=error,
            ignored=True,
            priority_modifier=constants.PRIORITY_MODIFIER_MINIMUM,
            leaf=leaf,
            hostname=hostname,
            ignored_for_empty_sans=True,
        )
    return HostnameValidationResult(
        chain,
        options,
        error=error,
        ignored=ignored,
        priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
        leaf=leaf,
        hostname=hostname,
    )

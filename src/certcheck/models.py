from enum import Enum
from typing import Union, Optional
from datetime import datetime

import validators
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
    conint,
    PositiveInt,
)

from . import constants
from .exceptions import ConfigurationError

__module__ = "certcheck.models"


class ChainPosition(str, Enum):
    LEAF = "leaf"
    LEAF_SELF_SIGNED = "leaf-self-signed"
    INTERMEDIATE = "intermediate"
    ROOT = "root"
    UNKNOWN = "unknown"


class ServiceState(str, Enum):
    OK = constants.STATE_OK_LABEL
    WARNING = constants.STATE_WARNING_LABEL
    CRITICAL = constants.STATE_CRITICAL_LABEL
    UNKNOWN = constants.STATE_UNKNOWN_LABEL
    DEPENDENT = constants.STATE_DEPENDENT_LABEL

    @property
    def label(self) -> str:
        return self.value

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]

    @property
    def severity(self) -> int:
        """Ordering used when reducing many states to one, UNKNOWN ranks above CRITICAL"""
        return _SEVERITY[self]


_EXIT_CODES = {
    ServiceState.OK: constants.STATE_OK_EXIT_CODE,
    ServiceState.WARNING: constants.STATE_WARNING_EXIT_CODE,
    ServiceState.CRITICAL: constants.STATE_CRITICAL_EXIT_CODE,
    ServiceState.UNKNOWN: constants.STATE_UNKNOWN_EXIT_CODE,
    ServiceState.DEPENDENT: constants.STATE_DEPENDENT_EXIT_CODE,
}
_SEVERITY = {
    ServiceState.OK: 0,
    ServiceState.DEPENDENT: 1,
    ServiceState.WARNING: 2,
    ServiceState.CRITICAL: 3,
    ServiceState.UNKNOWN: 4,
}


def state_from_exit_code(exit_code: int) -> ServiceState:
    for state, code in _EXIT_CODES.items():
        if code == exit_code:
            return state
    return ServiceState.UNKNOWN


def is_valid_host(value: str) -> bool:
    return any(
        check(value) is True
        for check in (validators.domain, validators.ipv4, validators.ipv6)
    )


class ValidationOptions(BaseModel):
    """Every toggle a validation check may consult, passed explicitly to each check"""

    model_config = ConfigDict(frozen=True)

    ignore_validation_result_expiration: bool = Field(default=False)
    ignore_validation_result_hostname: bool = Field(default=False)
    ignore_validation_result_sans: bool = Field(default=False)
    ignore_validation_result_chain_order: bool = Field(default=False)
    ignore_validation_result_root: bool = Field(default=False)
    ignore_validation_result_weak_signature: bool = Field(default=False)
    ignore_expired_intermediate: bool = Field(default=False)
    ignore_expired_root: bool = Field(default=False)
    ignore_expiring_intermediate: bool = Field(default=False)
    ignore_expiring_root: bool = Field(default=False)
    ignore_hostname_verification_if_empty_sans: bool = Field(default=False)


class CheckConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    server: Union[str, None] = Field(default=None)
    port: conint(ge=1, le=65535) = Field(default=constants.DEFAULT_PORT)
    dns_name: Union[str, None] = Field(default=None)
    filename: Union[str, None] = Field(default=None)
    sans_entries: list[str] = Field(default=[])
    age_warning: int = Field(default=constants.DEFAULT_AGE_WARNING)
    age_critical: int = Field(default=constants.DEFAULT_AGE_CRITICAL)
    timeout: PositiveInt = Field(default=constants.DEFAULT_TIMEOUT)
    verbose: bool = Field(default=False)
    omit_sans_entries: bool = Field(default=False)
    list_ignored_errors: bool = Field(default=False)
    emit_branding: bool = Field(default=False)
    emit_payload: bool = Field(default=False)
    emit_payload_with_full_chain: bool = Field(default=False)
    payload_delimiter_left: str = Field(default=constants.DEFAULT_PAYLOAD_DELIMITER_LEFT)
    payload_delimiter_right: str = Field(
        default=constants.DEFAULT_PAYLOAD_DELIMITER_RIGHT
    )
    apply_validation_results: list[str] = Field(default=[])
    ignore_validation_results: list[str] = Field(default=[])
    ignore_validation_result_weak_signature: bool = Field(default=False)
    ignore_expired_intermediate: bool = Field(default=False)
    ignore_expired_root: bool = Field(default=False)
    ignore_expiring_intermediate: bool = Field(default=False)
    ignore_expiring_root: bool = Field(default=False)
    ignore_hostname_verification_if_empty_sans: bool = Field(default=False)

    @field_validator("server", "dns_name")
    @classmethod
    def check_host(cls, value):
        if value is None or value == "":
            return None
        value = value.strip()
        if not is_valid_host(value):
            raise ValueError(f"{value} is not a valid hostname or IP address")
        return value

    @field_validator("sans_entries")
    @classmethod
    def strip_sans_entries(cls, entries):
        return [entry.strip() for entry in entries if entry.strip()]

    @field_validator("apply_validation_results", "ignore_validation_results")
    @classmethod
    def check_keywords(cls, keywords):
        normalized = [keyword.strip().lower() for keyword in keywords]
        invalid = [k for k in normalized if k not in constants.VALIDATION_KEYWORDS]
        if invalid:
            raise ValueError(
                f"unsupported validation keyword(s) {', '.join(invalid)}; "
                f"expected one of {', '.join(sorted(constants.VALIDATION_KEYWORDS))}"
            )
        return normalized

    @field_validator("age_warning", "age_critical")
    @classmethod
    def check_age(cls, value):
        if value < 0:
            raise ValueError("certificate age thresholds cannot be negative")
        return value

    @model_validator(mode="after")
    def check_combinations(self):
        if bool(self.server) == bool(self.filename):
            raise ValueError("exactly one of server or filename must be specified")
        conflicts = set(self.apply_validation_results) & set(
            self.ignore_validation_results
        )
        if conflicts:
            raise ConfigurationError(
                f"validation keyword(s) {', '.join(sorted(conflicts))} "
                "specified in both apply and ignore lists"
            )
        return self

    def should_apply(self, keyword: str) -> bool:
        if keyword in self.ignore_validation_results:
            return False
        if keyword in self.apply_validation_results:
            return True
        if keyword == constants.VALIDATION_KEYWORD_EXPIRATION:
            return True
        if keyword == constants.VALIDATION_KEYWORD_HOSTNAME:
            return bool(self.server or self.dns_name)
        if keyword == constants.VALIDATION_KEYWORD_SANS:
            return len(self.sans_entries) > 0
        return False

    def validation_options(self) -> ValidationOptions:
        return ValidationOptions(
            ignore_validation_result_expiration=not self.should_apply(
                constants.VALIDATION_KEYWORD_EXPIRATION
            ),
            ignore_validation_result_hostname=not self.should_apply(
                constants.VALIDATION_KEYWORD_HOSTNAME
            ),
            ignore_validation_result_sans=not self.should_apply(
                constants.VALIDATION_KEYWORD_SANS
            ),
            ignore_validation_result_chain_order=not self.should_apply(
                constants.VALIDATION_KEYWORD_CHAIN_ORDER
            ),
            ignore_validation_result_root=not self.should_apply(
                constants.VALIDATION_KEYWORD_ROOT
            ),
            ignore_validation_result_weak_signature=self.ignore_validation_result_weak_signature,
            ignore_expired_intermediate=self.ignore_expired_intermediate,
            ignore_expired_root=self.ignore_expired_root,
            ignore_expiring_intermediate=self.ignore_expiring_intermediate,
            ignore_expiring_root=self.ignore_expiring_root,
            ignore_hostname_verification_if_empty_sans=self.ignore_hostname_verification_if_empty_sans,
        )

    @property
    def source(self) -> str:
        if self.filename:
            return self.filename
        return f"{self.server}:{self.port}"


class PayloadCertificateStatus(BaseModel):
    ok: bool
    expiring: bool
    expired: bool


class PayloadCertificate(BaseModel):
    subject: str
    common_name: Union[str, None] = Field(default=None)
    sans_entries: Optional[list[str]] = Field(default=None)
    sans_entries_count: int = Field(default=0)
    issuer: str
    issuer_short: Union[str, None] = Field(default=None)
    serial_number: str
    issued_on: datetime
    expires_on: datetime
    days_remaining: float
    days_remaining_truncated: int
    lifetime_remaining_percent: int
    validity_period_days: int
    summary: str
    status: PayloadCertificateStatus
    signature_algorithm: Union[str, None] = Field(default=None)
    type: ChainPosition


class PayloadChainIssues(BaseModel):
    missing_intermediate_certs: bool = Field(default=False)
    missing_sans_entries: bool = Field(default=False)
    duplicate_certs: bool = Field(default=False)
    misordered_certs: bool = Field(default=False)
    expired_certs: bool = Field(default=False)
    hostname_mismatch: bool = Field(default=False)
    self_signed_leaf_cert: bool = Field(default=False)
    weak_signature_algorithm: bool = Field(default=False)


class PayloadServer(BaseModel):
    host_value: Union[str, None] = Field(default=None)
    ip_address: Union[str, None] = Field(default=None)


class CertChainPayload(BaseModel):
    format_version: int = Field(default=constants.PAYLOAD_FORMAT_VERSION)
    errors: list[str] = Field(default=[])
    cert_chain_original: Optional[list[str]] = Field(default=None)
    cert_chain_subset: list[PayloadCertificate] = Field(default=[])
    server: PayloadServer = Field(default_factory=PayloadServer)
    dns_name: Union[str, None] = Field(default=None)
    tcp_port: Union[int, None] = Field(default=None)
    issues: PayloadChainIssues = Field(default_factory=PayloadChainIssues)
    service_state: ServiceState = Field(default=ServiceState.UNKNOWN)

import logging
from typing import Union

from .. import constants, chain as chain_utils
from ..certificate import Certificate
from ..exceptions import MissingValueError, SANsMismatchError
from ..models import ServiceState, ValidationOptions
from . import ValidationResult, empty_chain_error

__module__ = "certcheck.validations.sans"

logger = logging.getLogger(__name__)


class SANsListValidationResult(ValidationResult):
    check_name = constants.CHECK_NAME_SANS_LIST
    base_priority = constants.BASELINE_PRIORITY_SANS_LIST
    failure_state = ServiceState.CRITICAL

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
        leaf: Union[Certificate, None] = None,
        required: list[str] = None,
        missing: list[str] = None,
        unexpected: list[str] = None,
        skipped: bool = False,
    ) -> None:
        super().__init__(chain, options, error, ignored, priority_modifier)
        self.leaf = leaf
        self.required = required or []
        self.missing = missing or []
        self.unexpected = unexpected or []
        self.skipped = skipped

    @property
    def num_expected(self) -> int:
        return len(self.required)

    @property
    def num_present(self) -> int:
        return len(self.leaf.san) if self.leaf else 0

    @property
    def num_matched(self) -> int:
        return max(self.num_expected - len(self.missing), 0)

    @property
    def num_mismatched(self) -> int:
        return len(self.missing) + len(self.unexpected)

    @property
    def leaf_position(self) -> str:
        if self.leaf is None:
            return "unknown"
        return chain_utils.chain_position(self.leaf, self.chain).value

    def status(self) -> str:
        if self.leaf is None or self.is_input_error:
            return super().status()
        if self.ignored:
            return (
                f"{self.name} validation ignored: {self.num_expected} SANs entries "
                f"specified, {self.num_present} SANs entries on {self.leaf_position} cert"
            )
        if self.is_failed:
            return f"{self.name} validation failed for {self.leaf_position} cert"
        return (
            f"{self.name} validation successful: expected and confirmed "
            f"({self.num_matched}) SANs entries present for {self.leaf_position} cert"
        )

    def overview(self) -> str:
        return "[%d EXPECTED, %d MISSING, %d UNEXPECTED]" % (
            self.num_expected,
            len(self.missing),
            len(self.unexpected),
        )

    def status_detail(self) -> str:
        if not self.missing and not self.unexpected:
            return ""
        missing = ", ".join(self.missing) if self.missing else "N/A"
        unexpected = ", ".join(self.unexpected) if self.unexpected else "N/A"
        return f"missing: [{missing}], unexpected: [{unexpected}]"

    def report(self) -> str:
        detail = self.status_detail()
        if not detail:
            return str(self)
        return f"{self}; {detail}"

    def counters(self) -> dict[str, int]:
        counters = super().counters()
        counters.update(
            {
                "sans_entries_requested": self.num_expected,
                "sans_entries_found": self.num_matched,
                "sans_entries_mismatched": self.num_mismatched,
            }
        )
        return counters


def is_skip_keyword(required: list[str]) -> bool:
    return (
        len(required) > 0
        and required[0].strip().upper() == constants.SKIP_SANS_CHECKS_KEYWORD
    )


def validate_sans_list(
    chain: list[Certificate],
    required: list[str] = None,
    options: ValidationOptions = None,
) -> SANsListValidationResult:
    options = options or ValidationOptions()
    required = [entry.strip() for entry in (required or []) if entry.strip()]
    ignored = options.ignore_validation_result_sans
    leaf = chain_utils.leaf_cert(chain) or (chain[0] if chain else None)

    if is_skip_keyword(required):
        logger.debug(f"{constants.SKIP_SANS_CHECKS_KEYWORD} keyword given, skipping")
        return SANsListValidationResult(
            chain, options, ignored=True, leaf=leaf, required=required, skipped=True
        )
    if not chain:
        return SANsListValidationResult(
            chain,
            options,
            error=empty_chain_error(),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
            required=required,
        )
    if not required:
        return SANsListValidationResult(
            chain,
            options,
            error=MissingValueError("required SANs entries list is empty"),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
            leaf=leaf,
        )

    present = [name.lower() for name in leaf.san]
    wanted = [entry.lower() for entry in required]
    missing = [entry for entry in wanted if entry not in present]
    unexpected = [name for name in present if name not in wanted]
    logger.debug(f"SANs missing {missing} unexpected {unexpected}")

    if missing:
        return SANsListValidationResult(
            chain,
            options,
            error=SANsMismatchError(
                f"{len(missing)} required SANs entries missing from certificate"
            ),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
            leaf=leaf,
            required=required,
            missing=missing,
            unexpected=unexpected,
        )
    return SANsListValidationResult(
        chain,
        options,
        ignored=ignored,
        leaf=leaf,
        required=required,
        unexpected=unexpected,
    )

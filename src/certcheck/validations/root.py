import logging
from typing import Union

from .. import constants, chain as chain_utils
from ..certificate import Certificate
from ..exceptions import RootPresentInChainError
from ..models import ServiceState, ValidationOptions
from . import ValidationResult, empty_chain_error

__module__ = "certcheck.validations.root"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


class RootValidationResult(ValidationResult):
    check_name = constants.CHECK_NAME_ROOT
    base_priority = constants.BASELINE_PRIORITY_ROOT
    failure_state = ServiceState.WARNING

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
        num_root_certs: int = 0,
    ) -> None:
        super().__init__(chain, options, error, ignored, priority_modifier)
        self.num_root_certs = num_root_certs

    def status(self) -> str:
        if isinstance(self.error, RootPresentInChainError):
            return (
                f"{self.name} validation {self.validation_status()}: "
                f"{self.num_root_certs} root certs present"
            )
        if self.error is not None:
            return super().status()
        return (
            f"{self.name} validation {self.validation_status()}: "
            f"{self.total_certs} certs present, {self.num_root_certs} root certs"
        )

    def overview(self) -> str:
        return "[ROOT CERTS: %d, TOTAL: %d]" % (self.num_root_certs, self.total_certs)

    def status_detail(self) -> str:
        if not isinstance(self.error, RootPresentInChainError):
            return ""
        return (
            f"A root certificate in the chain was found!{EOL}{EOL}"
            f"{constants.ROOT_CERT_FOUND_ADVICE}{EOL}"
        )

    def counters(self) -> dict[str, int]:
        counters = super().counters()
        counters["root_certs"] = self.num_root_certs
        return counters


def validate_root(
    chain: list[Certificate], options: ValidationOptions = None
) -> RootValidationResult:
    options = options or ValidationOptions()
    ignored = options.ignore_validation_result_root
    if not chain:
        return RootValidationResult(
            chain,
            options,
            error=empty_chain_error(),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
        )
    num_roots = chain_utils.num_root_certs(chain)
    if num_roots > 0:
        return RootValidationResult(
            chain,
            options,
            error=RootPresentInChainError(
                f"{num_roots} root certificates found in chain"
            ),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MINIMUM,
            num_root_certs=num_roots,
        )
    return RootValidationResult(chain, options, ignored=ignored)

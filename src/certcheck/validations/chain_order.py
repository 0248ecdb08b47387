import logging
from typing import Union

from .. import constants, chain as chain_utils
from ..certificate import Certificate
from ..exceptions import IncompleteChainError, MisorderedChainError
from ..models import ChainPosition, ServiceState, ValidationOptions
from . import ValidationResult, empty_chain_error

__module__ = "certcheck.validations.chain_order"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


def summarize_chain_order(chain: list[Certificate], reference_chain: list[Certificate] = None) -> str:
    reference_chain = reference_chain or chain
    lines = []
    for index, cert in enumerate(chain):
        position = chain_utils.chain_position(cert, reference_chain)
        lines.append(f"({index}) {cert.display_name or 'unknown cert'} [{position.value}]")
    return EOL.join(lines) + EOL


def reorder_chain_advice(chain: list[Certificate]) -> str:
    if not chain:
        return ""
    return (
        f"This issue is often caused by using the incorrect intermediates bundle (with reversed entries).{EOL}"
        f"It is recommended that you reorder the certificate chain to resolve this issue.{EOL}{EOL}"
        f"Current chain order:{EOL}{EOL}{summarize_chain_order(chain)}{EOL}"
        f"Recommended chain order:{EOL}{EOL}"
        f"{summarize_chain_order(chain_utils.recommended_order(chain), chain)}"
    )


def incomplete_chain_advice(chain: list[Certificate]) -> str:
    if not chain:
        return ""
    advice = (
        "This issue often occurs with Windows Servers when (newer) intermediates "
        f"are missing from the certificate stores.{EOL}"
    )
    first_position = chain_utils.position_at(0, chain)
    name = chain[0].display_name
    host_ref = f" for {name} " if name else " "
    if first_position == ChainPosition.LEAF_SELF_SIGNED:
        advice += (
            f"It is recommended that you replace the {first_position.value} "
            f"certificate with a valid certificate chain.{EOL}"
        )
    elif chain_utils.num_intermediate_certs(chain) == 0:
        advice += (
            f"It is recommended that you configure the service{host_ref}"
            f"to include the missing intermediates.{EOL}"
        )
    return advice


class ChainOrderValidationResult(ValidationResult):
    check_name = constants.CHECK_NAME_CHAIN_ORDER
    base_priority = constants.BASELINE_PRIORITY_CHAIN_ORDER
    failure_state = ServiceState.WARNING

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
        num_misordered: int = 0,
    ) -> None:
        super().__init__(chain, options, error, ignored, priority_modifier)
        self.num_misordered = num_misordered

    @property
    def num_ordered(self) -> int:
        return self.total_certs - self.num_misordered

    def status(self) -> str:
        if isinstance(self.error, MisorderedChainError):
            return (
                f"{self.name} validation {self.validation_status()}: "
                f"{self.num_misordered} certs misordered"
            )
        if self.error is not None:
            return f"{self.name} validation {self.validation_status()}: {self.error}"
        return (
            f"{self.name} validation {self.validation_status()}: "
            f"{self.total_certs} certs present, {self.num_misordered} certs misordered"
        )

    def overview(self) -> str:
        return "[ORDERED: %d, MISORDERED: %d, TOTAL: %d]" % (
            self.num_ordered,
            self.num_misordered,
            self.total_certs,
        )

    def status_detail(self) -> str:
        if isinstance(self.error, MisorderedChainError):
            return f"A misordered certificate chain was found!{EOL}" + reorder_chain_advice(
                self.chain
            )
        if isinstance(self.error, IncompleteChainError):
            return (
                f"An incomplete certificate chain was found ({self.total_certs} certs total)."
                f"{EOL}{EOL}{incomplete_chain_advice(self.chain)}"
            )
        return ""

    def counters(self) -> dict[str, int]:
        counters = super().counters()
        counters.update(
            {
                "chain_entries_ordered": self.num_ordered,
                "chain_entries_misordered": self.num_misordered,
            }
        )
        return counters


def validate_chain_order(
    chain: list[Certificate], options: ValidationOptions = None
) -> ChainOrderValidationResult:
    """Each certificate must be issued, and signed, by the certificate following it"""
    options = options or ValidationOptions()
    ignored = options.ignore_validation_result_chain_order
    if not chain:
        return ChainOrderValidationResult(
            chain,
            options,
            error=empty_chain_error(),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
        )
    if len(chain) == 1:
        position = chain_utils.position_at(0, chain)
        return ChainOrderValidationResult(
            chain,
            options,
            error=IncompleteChainError(
                f"certificate chain contains only {position.value} cert"
            ),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MEDIUM,
        )

    misordered = [
        index
        for index in range(len(chain) - 1)
        if not chain_utils.is_ordered_pair(chain[index], chain[index + 1])
    ]
    logger.debug(f"misordered chain entries at {misordered}")
    if misordered:
        return ChainOrderValidationResult(
            chain,
            options,
            error=MisorderedChainError(
                f"{len(misordered)} certificates not followed by their issuer"
            ),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MINIMUM,
            num_misordered=len(misordered),
        )
    return ChainOrderValidationResult(chain, options, ignored=ignored)

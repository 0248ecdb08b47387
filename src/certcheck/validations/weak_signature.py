import logging
from typing import Union

from .. import constants, chain as chain_utils
from ..certificate import Certificate
from ..exceptions import WeakSignatureError
from ..models import ServiceState, ValidationOptions
from . import ValidationResult, empty_chain_error

__module__ = "certcheck.validations.weak_signature"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


class WeakSignatureValidationResult(ValidationResult):
    check_name = constants.CHECK_NAME_WEAK_SIGNATURE
    base_priority = constants.BASELINE_PRIORITY_WEAK_SIGNATURE
    failure_state = ServiceState.CRITICAL

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
        weak_certs: list[Certificate] = None,
    ) -> None:
        super().__init__(chain, options, error, ignored, priority_modifier)
        self.weak_certs = weak_certs or []

    @property
    def num_weak_certs(self) -> int:
        return len(self.weak_certs)

    @property
    def num_evaluated(self) -> int:
        return len(chain_utils.non_root_certs(self.chain))

    def status(self) -> str:
        if self.error is not None and self.is_input_error:
            return super().status()
        return (
            f"{self.name} validation {self.validation_status()}: "
            f"{self.num_weak_certs} of {self.num_evaluated} non-root certs "
            "use a weak signature algorithm"
        )

    def overview(self) -> str:
        return "[WEAK: %d, EVALUATED: %d, TOTAL: %d]" % (
            self.num_weak_certs,
            self.num_evaluated,
            self.total_certs,
        )

    def status_detail(self) -> str:
        if not self.weak_certs:
            return ""
        lines = []
        for cert in self.weak_certs:
            _, reason = constants.KNOWN_WEAK_SIGNATURE_ALGORITHMS[
                cert.signature_algorithm_oid
            ]
            position = chain_utils.chain_position(cert, self.chain).value
            lines.append(
                f'* {position} cert "{cert.display_name}" signed using '
                f"{cert.signature_algorithm}: {reason}"
            )
        return EOL.join(lines) + EOL + EOL + constants.WEAK_SIGNATURE_ADVICE

    def counters(self) -> dict[str, int]:
        counters = super().counters()
        counters["weak_signature_certs"] = self.num_weak_certs
        return counters


def validate_weak_signature(
    chain: list[Certificate], options: ValidationOptions = None
) -> WeakSignatureValidationResult:
    """Flags MD2, MD4, MD5 and SHA-1 based signatures on every non-root certificate

    Roots are exempt, trust store clients verify them by identity.
    """
    options = options or ValidationOptions()
    ignored = options.ignore_validation_result_weak_signature
    if not chain:
        return WeakSignatureValidationResult(
            chain,
            options,
            error=empty_chain_error(),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
        )
    weak = [
        cert
        for cert in chain_utils.non_root_certs(chain)
        if cert.has_weak_signature_algorithm
    ]
    if weak:
        return WeakSignatureValidationResult(
            chain,
            options,
            error=WeakSignatureError(
                f"{len(weak)} certificates signed using a weak signature algorithm"
            ),
            ignored=ignored,
            priority_modifier=constants.PRIORITY_MODIFIER_MAXIMUM,
            weak_certs=weak,
        )
    return WeakSignatureValidationResult(chain, options, ignored=ignored)

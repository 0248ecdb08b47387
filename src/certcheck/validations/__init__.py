import logging
from typing import Union

from .. import constants
from ..certificate import Certificate
from ..exceptions import MissingValueError, InvalidInputError, error_kind
from ..models import ServiceState, ValidationOptions

__module__ = "certcheck.validations"

logger = logging.getLogger(__name__)


class ValidationResult:
    """Shared capability contract for the outcome of one validation check

    Holds only what every check has in common; check specific counters live
    on the subclasses. Failures are carried in `error`, checks never raise
    for a failed validation.
    """

    check_name: str = ""
    base_priority: int = constants.PRIORITY_MODIFIER_BASELINE
    failure_state: ServiceState = ServiceState.CRITICAL

    def __init__(
        self,
        chain: list[Certificate],
        options: ValidationOptions = None,
        error: Union[Exception, None] = None,
        ignored: bool = False,
        priority_modifier: int = constants.PRIORITY_MODIFIER_BASELINE,
    ) -> None:
        self.chain = chain
        self.options = options or ValidationOptions()
        self.error = error
        self.ignored = ignored
        self.priority_modifier = priority_modifier

    def __str__(self) -> str:
        overview = self.overview()
        if not overview:
            return self.status()
        return f"{self.status()} {overview}"

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} state={self.state.label} "
            f"priority={self.priority} ignored={self.ignored} error={self.error_kind}>"
        )

    @property
    def name(self) -> str:
        return self.check_name.lower()

    @property
    def total_certs(self) -> int:
        return len(self.chain)

    @property
    def error_kind(self) -> Union[str, None]:
        return error_kind(self.error)

    @property
    def is_input_error(self) -> bool:
        return isinstance(self.error, (MissingValueError, InvalidInputError))

    def failed_state(self) -> ServiceState:
        """State reported when the check failed for a reason other than bad input"""
        return self.failure_state

    @property
    def state(self) -> ServiceState:
        if self.ignored or self.error is None:
            return ServiceState.OK
        if self.is_input_error:
            return ServiceState.UNKNOWN
        return self.failed_state()

    @property
    def priority(self) -> int:
        if self.ignored:
            return self.base_priority
        return self.base_priority + self.priority_modifier

    @property
    def is_ok(self) -> bool:
        return self.error is None or self.ignored

    @property
    def is_succeeded(self) -> bool:
        return self.is_ok and not self.ignored

    @property
    def is_failed(self) -> bool:
        return self.error is not None and not self.ignored

    def validation_status(self) -> str:
        if self.is_failed:
            return constants.VALIDATION_STATUS_FAILED
        if self.ignored:
            return constants.VALIDATION_STATUS_IGNORED
        return constants.VALIDATION_STATUS_SUCCESSFUL

    def status(self) -> str:
        text = f"{self.name} validation {self.validation_status()}"
        if self.error is not None and self.is_input_error:
            text += f": {self.error}"
        return text

    def overview(self) -> str:
        return ""

    def status_detail(self) -> str:
        return ""

    def counters(self) -> dict[str, int]:
        return {"total_certs": self.total_certs}

    def report(self) -> str:
        detail = self.status_detail()
        if not detail:
            return str(self)
        return f"{self}{constants.CHECK_OUTPUT_EOL}{constants.CHECK_OUTPUT_EOL}{detail}"


def empty_chain_error() -> MissingValueError:
    return MissingValueError("required certificate chain is empty")

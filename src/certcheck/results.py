import logging
from typing import Union

from . import constants
from .exceptions import MissingValueError
from .models import ServiceState
from .validations import ValidationResult

__module__ = "certcheck.results"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


class ValidationResults:
    """Ordered collection of validation results reduced to one verdict

    Insertion order is kept everywhere, including the detail listing.
    """

    def __init__(self, results: list[ValidationResult] = None) -> None:
        self._results: list[ValidationResult] = list(results or [])

    def __iter__(self):
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __getitem__(self, index):
        return self._results[index]

    def add(self, result: ValidationResult) -> None:
        logger.debug(
            f"{result.check_name} validation {result.validation_status()} "
            f"priority={result.priority} counters={result.counters()}"
        )
        self._results.append(result)

    def check_names(self) -> list[str]:
        return [result.check_name for result in self._results]

    def ignored(self) -> list[ValidationResult]:
        return [result for result in self._results if result.ignored]

    def failed(self) -> list[ValidationResult]:
        return [result for result in self._results if result.is_failed]

    def succeeded(self) -> list[ValidationResult]:
        return [result for result in self._results if result.is_succeeded]

    @property
    def num_ignored(self) -> int:
        return len(self.ignored())

    @property
    def num_failed(self) -> int:
        return len(self.failed())

    @property
    def num_succeeded(self) -> int:
        return len(self.succeeded())

    @property
    def has_failed(self) -> bool:
        return self.num_failed > 0

    @property
    def state(self) -> ServiceState:
        """Most severe state among non-ignored results, UNKNOWN above CRITICAL"""
        if not self._results:
            return ServiceState.UNKNOWN
        return max(
            (result.state for result in self._results if not result.ignored),
            key=lambda state: state.severity,
            default=ServiceState.OK,
        )

    def lead(self) -> Union[ValidationResult, None]:
        """Highest priority non-ignored result whose state equals the overall state

        max() keeps the first of equal priorities, so ties go to insertion order.
        """
        if not self._results:
            return None
        state = self.state
        candidates = [
            result
            for result in self._results
            if not result.ignored and result.state == state
        ]
        return max(candidates or self._results, key=lambda result: result.priority)

    def errs(self, include_ignored: bool = False) -> list[Exception]:
        if not self._results:
            return [MissingValueError("no certificate validation results available")]
        return [
            result.error
            for result in self._results
            if result.error is not None and (include_ignored or not result.ignored)
        ]

    def overview(self) -> str:
        def listing(label: str, results: list[ValidationResult]) -> str:
            if not results:
                return f"0 {label}"
            return f"{len(results)} {label} ({', '.join(r.check_name for r in results)})"

        return "[checks: %s, %s, %s]" % (
            listing("IGNORED", self.ignored()),
            listing("FAILED", self.failed()),
            listing("SUCCESSFUL", self.succeeded()),
        )

    def status(self) -> str:
        lead = self.lead()
        if lead is None:
            return f"{self.state.label}: no certificate validation results available"
        return f"{self.state.label}: {lead}"

    def one_line_summary(self) -> str:
        return f"{self.status()} {self.overview()}"

    def report(self) -> str:
        """Every result in insertion order, prefixed by [!!] failed, [--] ignored or [OK]"""
        if not self._results:
            return ""
        blocks = []
        for result in self._results:
            if result.is_failed:
                marker = "[!!]"
            elif result.ignored:
                marker = "[--]"
            else:
                marker = "[OK]"
            blocks.append(f"{marker} {result.report()}")
        return EOL + (EOL + EOL).join(blocks) + EOL

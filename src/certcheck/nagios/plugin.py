import logging
import sys
import time
import traceback
from typing import Callable, TextIO, Union

from .. import constants
from ..exceptions import InvalidInputError, PanicDetectedError
from . import annotations
from .payload import encode_payload
from .perfdata import PerformanceData
from .range import parse_range

__module__ = "certcheck.nagios.plugin"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


class Plugin:
    """State of one plugin invocation, rendered to a single output artifact

    Use as a context manager so that every exit path, including an exception
    raised by the caller, ends in `return_check_results()`.
    """

    def __init__(self, track_runtime: bool = True) -> None:
        self.last_error: Union[BaseException, None] = None
        self.errors: list[BaseException] = []
        self.exit_status_code: int = constants.STATE_OK_EXIT_CODE
        self.service_output: str = ""
        self.long_service_output: str = ""
        self.warning_threshold: str = ""
        self.critical_threshold: str = ""
        self.branding_callback: Union[Callable[[], str], None] = None

        self._start_time = time.perf_counter() if track_runtime else None
        self._perfdata: dict[str, PerformanceData] = {}
        self._payload = bytearray()
        self._payload_delimiter_left = constants.DEFAULT_PAYLOAD_DELIMITER_LEFT
        self._payload_delimiter_right = constants.DEFAULT_PAYLOAD_DELIMITER_RIGHT
        self._errors_label = constants.DEFAULT_ERRORS_LABEL
        self._thresholds_label = constants.DEFAULT_THRESHOLDS_LABEL
        self._detailed_info_label = constants.DEFAULT_DETAILED_INFO_LABEL
        self._encoded_payload_label = constants.DEFAULT_ENCODED_PAYLOAD_LABEL
        self._hide_errors = False
        self._hide_thresholds = False
        self._output_target: Union[TextIO, None] = None
        self._skip_os_exit = False

    def __enter__(self) -> "Plugin":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None and not issubclass(exc_type, (SystemExit, KeyboardInterrupt)):
            self._recover(exc_type, exc, tb)
        elif exc is not None:
            return False
        self.return_check_results()
        return exc is not None

    def _recover(self, exc_type, exc, tb) -> None:
        logger.error(f"plugin crash detected: {exc!r}")
        trace = "".join(traceback.format_exception(exc_type, exc, tb)).rstrip("\n")
        trace = trace.replace("\n", EOL)
        self.service_output = constants.PLUGIN_CRASH_SERVICE_OUTPUT
        self.add_error(PanicDetectedError(str(exc)))
        self.long_service_output = (
            f"```{EOL}{exc!r}{EOL}{EOL}{trace}{EOL}```"
        )
        self.exit_status_code = constants.STATE_CRITICAL_EXIT_CODE

    # errors

    def add_error(self, *errors: BaseException) -> None:
        self.errors.extend(err for err in errors if err is not None)

    def add_unique_error(self, *errors: BaseException) -> None:
        known = {str(err).lower() for err in self.errors}
        for err in annotations.unique_errors(list(errors)):
            if str(err).lower() in known:
                continue
            known.add(str(err).lower())
            self.errors.append(err)

    def annotate_errors(self, mappings: dict[type, str] = None) -> None:
        self.errors = annotations.annotate_errors(self.errors, mappings)

    # performance data

    def add_perfdata(self, *perfdata: PerformanceData, skip_validate: bool = False) -> None:
        """Records metrics keyed by case-folded label, later entries replace earlier ones"""
        for pd in perfdata:
            if not skip_validate:
                pd.validate()
            self._perfdata[pd.key] = pd

    @property
    def perfdata(self) -> list[PerformanceData]:
        return [self._perfdata[key] for key in sorted(self._perfdata)]

    def evaluate_threshold(self, *perfdata: PerformanceData) -> Union[InvalidInputError, None]:
        """Sets CRITICAL or WARNING from the first metric whose range alerts

        Critical is checked before warning. An unparseable range sets UNKNOWN
        and the parse error is returned.
        """
        for pd in perfdata:
            for threshold, exit_code in (
                (pd.crit, constants.STATE_CRITICAL_EXIT_CODE),
                (pd.warn, constants.STATE_WARNING_EXIT_CODE),
            ):
                if not threshold:
                    continue
                try:
                    alerts = parse_range(threshold).check(pd.value)
                except InvalidInputError as ex:
                    self.exit_status_code = constants.STATE_UNKNOWN_EXIT_CODE
                    return ex
                if alerts:
                    self.exit_status_code = exit_code
                    return None
        return None

    # encoded payload

    def set_payload_bytes(self, data: bytes) -> int:
        self._payload = bytearray(data)
        return len(data)

    def set_payload_string(self, data: str) -> int:
        return self.set_payload_bytes(data.encode("utf-8"))

    def add_payload_bytes(self, data: bytes) -> int:
        self._payload.extend(data)
        return len(data)

    def add_payload_string(self, data: str) -> int:
        return self.add_payload_bytes(data.encode("utf-8"))

    def unencoded_payload(self) -> bytes:
        return bytes(self._payload)

    def set_encoded_payload_delimiter_left(self, delimiter: str) -> None:
        self._payload_delimiter_left = delimiter

    def set_encoded_payload_delimiter_right(self, delimiter: str) -> None:
        self._payload_delimiter_right = delimiter

    # presentation

    def set_output_target(self, target: TextIO) -> None:
        self._output_target = target

    def skip_os_exit(self) -> None:
        self._skip_os_exit = True

    def hide_errors_section(self) -> None:
        self._hide_errors = True

    def hide_thresholds_section(self) -> None:
        self._hide_thresholds = True

    def set_errors_label(self, label: str) -> None:
        self._errors_label = label

    def set_thresholds_label(self, label: str) -> None:
        self._thresholds_label = label

    def set_detailed_info_label(self, label: str) -> None:
        self._detailed_info_label = label

    def set_encoded_payload_label(self, label: str) -> None:
        self._encoded_payload_label = label

    @property
    def is_errors_hidden(self) -> bool:
        return self._hide_errors or (not self.errors and self.last_error is None)

    @property
    def is_thresholds_hidden(self) -> bool:
        return self._hide_thresholds or (
            not self.warning_threshold and not self.critical_threshold
        )

    @property
    def is_payload_hidden(self) -> bool:
        return not self._payload

    def _service_output_section(self) -> str:
        if not self.long_service_output:
            return self.service_output.rstrip(" \t\n")
        return self.service_output

    def _errors_section(self) -> str:
        if self.is_errors_hidden:
            return ""
        section = f"{EOL}{EOL}**{self._errors_label}**{EOL}{EOL}"
        if self.last_error is not None:
            section += f"* {self.last_error}{EOL}"
        for err in self.errors:
            section += f"* {err}{EOL}"
        return section

    def _thresholds_section(self) -> str:
        if self.is_thresholds_hidden:
            return ""
        section = f"{EOL}**{self._thresholds_label}**{EOL}{EOL}"
        if self.critical_threshold:
            section += f"* {constants.STATE_CRITICAL_LABEL}: {self.critical_threshold}{EOL}"
        if self.warning_threshold:
            section += f"* {constants.STATE_WARNING_LABEL}: {self.warning_threshold}{EOL}"
        return section

    def _detailed_info_section(self) -> str:
        if not self.long_service_output:
            return ""
        if self.is_errors_hidden and self.is_thresholds_hidden and self.is_payload_hidden:
            header = EOL
        else:
            header = f"{EOL}**{self._detailed_info_label}**{EOL}"
        return f"{header}{EOL}{self.long_service_output}{EOL}"

    def _encoded_payload_section(self) -> str:
        if self.is_payload_hidden:
            return ""
        encoded = encode_payload(
            bytes(self._payload),
            self._payload_delimiter_left,
            self._payload_delimiter_right,
        )
        return f"{EOL}**{self._encoded_payload_label}**{EOL}{EOL}{encoded}{EOL}"

    def _branding_section(self) -> str:
        if self.branding_callback is None:
            return ""
        return f"{EOL}{self.branding_callback()}{EOL}"

    def _add_default_time_metric(self) -> None:
        if self._start_time is None or constants.DEFAULT_TIME_METRIC_LABEL in self._perfdata:
            return
        elapsed = int((time.perf_counter() - self._start_time) * 1000)
        self.add_perfdata(
            PerformanceData(
                label=constants.DEFAULT_TIME_METRIC_LABEL,
                value=elapsed,
                uom=constants.DEFAULT_TIME_METRIC_UOM,
            )
        )

    def _perfdata_section(self) -> str:
        if not self._perfdata or not self.service_output:
            return ""
        return " |" + "".join(f" {pd}" for pd in self.perfdata) + EOL

    def render(self) -> str:
        self._add_default_time_metric()
        return "".join(
            (
                self._service_output_section(),
                self._errors_section(),
                self._thresholds_section(),
                self._detailed_info_section(),
                self._encoded_payload_section(),
                self._branding_section(),
                self._perfdata_section(),
            )
        )

    def return_check_results(self) -> None:
        """Writes the artifact in one write, then exits with the exit status code"""
        output = self.render()
        target = self._output_target or sys.stdout
        target.write(output)
        target.flush()
        logger.debug(f"wrote {len(output)} bytes of plugin output, exit code {self.exit_status_code}")
        if self._skip_os_exit:
            logger.debug("skipping os exit call as requested")
            return
        sys.exit(self.exit_status_code)

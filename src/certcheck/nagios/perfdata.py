import logging
import re
from dataclasses import dataclass

from ..exceptions import InvalidInputError, MissingValueError

__module__ = "certcheck.nagios.perfdata"

logger = logging.getLogger(__name__)

UNKNOWN_VALUE = "U"
_NUMERIC = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")


def _is_numeric(value: str) -> bool:
    return bool(_NUMERIC.match(value))


@dataclass
class PerformanceData:
    """A single metric of the performance data line

    `'<label>'=<value><uom>;<warn>;<crit>;<min>;<max>`, every field apart from
    label and value is optional.
    """

    label: str
    value: str
    uom: str = ""
    warn: str = ""
    crit: str = ""
    min: str = ""
    max: str = ""

    def __post_init__(self):
        for field in ("value", "uom", "warn", "crit", "min", "max"):
            value = getattr(self, field)
            setattr(self, field, "" if value is None else str(value))

    @property
    def key(self) -> str:
        return self.label.casefold()

    def validate(self) -> None:
        if not self.label:
            raise MissingValueError("performance data label is required")
        if "'" in self.label or "=" in self.label:
            raise InvalidInputError(
                f"performance data label {self.label!r} contains a single quote or equals sign"
            )
        if not self.value:
            raise MissingValueError(f"performance data value for {self.label!r} is required")
        if self.value != UNKNOWN_VALUE and not _is_numeric(self.value):
            raise InvalidInputError(
                f"performance data value {self.value!r} for {self.label!r} is not numeric"
            )
        for field in ("min", "max"):
            value = getattr(self, field)
            if value and not _is_numeric(value):
                raise InvalidInputError(
                    f"performance data {field} {value!r} for {self.label!r} is not numeric"
                )

    def __str__(self) -> str:
        return "'%s'=%s%s;%s;%s;%s;%s" % (
            self.label,
            self.value,
            self.uom,
            self.warn,
            self.crit,
            self.min,
            self.max,
        )

import logging
import math
import re
from dataclasses import dataclass
from typing import Union

from ..exceptions import InvalidInputError

__module__ = "certcheck.nagios.range"

logger = logging.getLogger(__name__)

ALERT_ON_OUTSIDE = "OUTSIDE"
ALERT_ON_INSIDE = "INSIDE"

_NUMBER = r"(?:[-+]?[\d\.]+)(?:e(?:[-+]?[\d\.]+))?"
RANGE_PATTERN = re.compile(rf"^\@?({_NUMBER}|~)?(:({_NUMBER})?)?$")
_DIGIT_OR_INFINITY = re.compile(r"[\d~]")


@dataclass(frozen=True)
class Range:
    """Monitoring plugin threshold range, `[@][start]:[end]`"""

    start: float = 0.0
    end: float = math.inf
    alert_on: str = ALERT_ON_OUTSIDE

    @property
    def start_infinity(self) -> bool:
        return self.start == -math.inf

    @property
    def end_infinity(self) -> bool:
        return self.end == math.inf

    def is_outside(self, value: float) -> bool:
        if self.start_infinity and self.end_infinity:
            return False
        if self.start_infinity:
            return value > self.end
        if self.end_infinity:
            return value < self.start
        return not self.start <= value <= self.end

    def check(self, value: Union[str, float, int]) -> bool:
        """True when the value should raise an alert"""
        value = float(value)
        outside = self.is_outside(value)
        if self.alert_on == ALERT_ON_INSIDE:
            return not outside
        return outside


def _to_float(text: str, source: str) -> float:
    try:
        return float(text)
    except ValueError as err:
        raise InvalidInputError(f"invalid range value {text!r} in {source!r}") from err


def parse_range(text: str) -> Range:
    if text is None or not _DIGIT_OR_INFINITY.search(text) or not RANGE_PATTERN.match(text):
        raise InvalidInputError(f"failed to parse range string {text!r}")

    remainder = text
    alert_on = ALERT_ON_OUTSIDE
    if remainder.startswith("@"):
        alert_on = ALERT_ON_INSIDE
        remainder = remainder[1:]

    start, end = 0.0, math.inf
    if ":" in remainder:
        first, _, last = remainder.partition(":")
        if first == "~":
            start = -math.inf
        elif first:
            start = _to_float(first, text)
        if last:
            end = _to_float(last, text)
    elif remainder == "~":
        start, end = -math.inf, 0.0
    else:
        # a bare value N means 0:N
        end = _to_float(remainder, text)

    if start > end:
        raise InvalidInputError(
            f"range start {start} is greater than range end {end} in {text!r}"
        )
    return Range(start=start, end=end, alert_on=alert_on)

import logging
import ipaddress
from datetime import datetime, timezone
from decimal import Decimal
from datetime import date, time
from typing import Union

import validators

__module__ = "certcheck.util"

logger = logging.getLogger(__name__)


def force_str(s, encoding="utf-8", strings_only=False, errors="strict"):
    if issubclass(type(s), str):
        return s
    if strings_only and isinstance(
        s,
        (
            type(None),
            int,
            float,
            Decimal,
            datetime,
            date,
            time,
        ),
    ):
        return s
    if isinstance(s, bytes):
        s = str(s, encoding, errors)
    else:
        s = str(s)
    return s


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def insert_delimiter(text: str, delimiter: str, every: int) -> str:
    return delimiter.join(text[i : i + every] for i in range(0, len(text), every))


def bytes_to_delimited_hex(value: Union[bytes, None], delimiter: str = ":") -> str:
    if not value:
        return ""
    return insert_delimiter(value.hex().upper(), delimiter, 2)


def format_serial_number(serial: int) -> str:
    """Colon delimited upper case hex, e.g. 0x0aff01 renders as 0A:FF:01"""
    negative = serial < 0
    serial = abs(serial)
    # add leading 0 then force even num of hex digits
    hex_str = "0%X" % serial
    hex_str = hex_str[1:] if len(hex_str) % 2 == 1 else hex_str
    formatted = insert_delimiter(hex_str, ":", 2)
    return f"-{formatted}" if negative else formatted


def formatted_expiration(expires: datetime, now: datetime = None) -> str:
    now = as_utc(now) if now else utcnow()
    hours = (as_utc(expires) - now).total_seconds() / 3600
    expired = hours < 0
    hours = abs(hours)
    days = int(hours // 24)
    remaining_hours = int(hours - days * 24)
    text = f"{remaining_hours}h"
    if days > 0:
        text = f"{days}d {text}"
    return f"{text} ago" if expired else f"{text} remaining"


def format_duration(expires: datetime, now: datetime = None) -> str:
    """Like formatted_expiration without the trailing direction word"""
    return formatted_expiration(expires, now).rsplit(" ", 1)[0]


def format_date(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%d %H:%M:%S +0000 UTC")


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def match_hostname(host: str, dns_names: list[str], ip_addresses: list[str] = None) -> bool:
    """Matches host against SANs entries only, the subject CommonName is not consulted"""
    if not isinstance(host, str) or not host:
        return False
    host = host.strip().rstrip(".").lower()
    if is_ip_address(host):
        wanted = ipaddress.ip_address(host)
        return any(ipaddress.ip_address(ip) == wanted for ip in ip_addresses or [])
    if validators.domain(host) is not True:
        logger.debug(f"{host} is not a valid domain")
        return False
    for name in dns_names:
        name = name.strip().rstrip(".").lower()
        if name == host:
            return True
        if name.startswith("*."):
            # wildcard covers exactly one left-most label
            suffix = name[1:]
            label, _, rest = host.partition(".")
            if label and f".{rest}" == suffix:
                return True
    return False

from .plugin import Plugin
from .perfdata import PerformanceData
from .range import Range, parse_range
from .payload import (
    encode_payload,
    decode_payload,
    extract_encoded_payload,
    extract_and_decode_payload,
)
from .annotations import (
    annotate_error,
    annotate_errors,
    unique_errors,
    default_error_annotation_mappings,
)

__module__ = "certcheck.nagios"

import sys
import logging

__module__ = "certcheck"
__version__ = "0.1.0"

assert sys.version_info >= (3, 9), "Requires Python 3.9 or newer"
logger = logging.getLogger(__name__)

from .certificate import Certificate  # noqa: E402
from .chain import parse_pem_chain  # noqa: E402
from .results import ValidationResults  # noqa: E402

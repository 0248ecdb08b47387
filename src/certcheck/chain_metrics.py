import logging
from datetime import datetime

from . import chain as chain_utils, util
from .certificate import Certificate
from .exceptions import MissingValueError
from .nagios.perfdata import PerformanceData

__module__ = "certcheck.chain_metrics"

logger = logging.getLogger(__name__)


def _soonest_expiring(certs: list[Certificate]):
    if not certs:
        return None
    return min(certs, key=lambda cert: cert.not_after)


def _days_and_life(cert: Certificate, now: datetime) -> tuple[int, int]:
    if cert is None:
        return 0, 0
    return int(cert.expires_in_days(now)), cert.life_remaining_percent(now)


def chain_perfdata(
    chain: list[Certificate],
    age_critical: int,
    age_warning: int,
    now: datetime = None,
) -> list[PerformanceData]:
    """Metrics of the leaf and intermediate certs expiring first plus per position counts"""
    if not chain:
        raise MissingValueError("unable to generate metrics for an empty certificate chain")
    now = util.as_utc(now) if now else util.utcnow()

    leaf = _soonest_expiring(chain_utils.leaf_certs(chain))
    intermediate = _soonest_expiring(chain_utils.intermediate_certs(chain))
    expires_leaf, life_leaf = _days_and_life(leaf, now)
    expires_intermediate, life_intermediate = _days_and_life(intermediate, now)

    perfdata = [
        PerformanceData(
            label="expires_leaf",
            value=expires_leaf,
            uom="d",
            warn=age_warning,
            crit=age_critical,
        ),
        PerformanceData(
            label="expires_intermediate",
            value=expires_intermediate,
            uom="d",
            warn=age_warning,
            crit=age_critical,
        ),
        PerformanceData(label="certs_present_leaf", value=chain_utils.num_leaf_certs(chain)),
        PerformanceData(
            label="certs_present_intermediate",
            value=chain_utils.num_intermediate_certs(chain),
        ),
        PerformanceData(label="certs_present_root", value=chain_utils.num_root_certs(chain)),
        PerformanceData(
            label="certs_present_unknown", value=chain_utils.num_unknown_certs(chain)
        ),
        PerformanceData(label="life_remaining_leaf", value=life_leaf, uom="%"),
        PerformanceData(
            label="life_remaining_intermediate", value=life_intermediate, uom="%"
        ),
    ]
    logger.debug(f"chain metrics: {' '.join(str(pd) for pd in perfdata)}")
    return perfdata

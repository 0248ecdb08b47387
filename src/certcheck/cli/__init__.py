import logging
from datetime import datetime

from .. import __version__, constants, chain_metrics, util
from ..certificate import Certificate
from ..exceptions import CertificateParseError, NoCertsFoundError
from ..models import CheckConfig, ServiceState
from ..nagios import Plugin
from ..payload import cert_chain_payload, encode_cert_chain_payload
from ..results import ValidationResults
from ..transport import fetch_chain, load_pem_chain
from ..validations.chain_order import validate_chain_order
from ..validations.expiration import validate_expiration
from ..validations.hostname import validate_hostname
from ..validations.root import validate_root
from ..validations.sans import validate_sans_list
from ..validations.weak_signature import validate_weak_signature

__module__ = "certcheck.cli"

logger = logging.getLogger(__name__)

EOL = constants.CHECK_OUTPUT_EOL


def branding(prefix: str = "Notification generated by ") -> str:
    return f"{prefix}check-cert v{__version__}"


def run_validation_checks(
    config: CheckConfig, chain: list[Certificate], now: datetime = None
) -> ValidationResults:
    """Every check always runs, keywords that are not applied only mark results ignored"""
    options = config.validation_options()
    results = ValidationResults()
    results.add(validate_hostname(chain, config.server, config.dns_name, options))
    results.add(validate_sans_list(chain, config.sans_entries, options))
    results.add(
        validate_expiration(
            chain,
            config.age_critical,
            config.age_warning,
            verbose=config.verbose,
            omit_sans_entries=config.omit_sans_entries,
            options=options,
            now=now,
        )
    )
    results.add(validate_chain_order(chain, options))
    results.add(validate_root(chain, options))
    results.add(validate_weak_signature(chain, options))
    return results


def _chain_source(config: CheckConfig, ip_address: str) -> str:
    if config.filename:
        return config.filename
    host_value = config.dns_name or config.server
    if ip_address and ip_address != config.server:
        return (
            f"service running on {config.server} ({ip_address}) at port "
            f'{config.port} using host value "{host_value}"'
        )
    return f'service running on {config.server} at port {config.port} using host value "{host_value}"'


def _load_chain(config: CheckConfig, plugin: Plugin):
    """Returns (chain, ip address) or None when the plugin already holds a verdict"""
    if config.filename:
        try:
            chain, leftover = load_pem_chain(config.filename)
        except (OSError, CertificateParseError) as ex:
            logger.error(f"Error parsing certificates file: {ex}")
            plugin.add_error(ex)
            plugin.service_output = (
                f'{constants.STATE_CRITICAL_LABEL}: Error parsing certificates file "{config.filename}"'
            )
            plugin.exit_status_code = constants.STATE_CRITICAL_EXIT_CODE
            return None
        if leftover:
            logger.error("Unknown data encountered while parsing certificates file")
            plugin.add_error(
                CertificateParseError(
                    f'{len(leftover)} unknown/unparsed bytes remaining at end of cert file "{config.filename}"'
                )
            )
            plugin.service_output = (
                f"{constants.STATE_WARNING_LABEL}: Unknown data encountered while "
                f'parsing certificates file "{config.filename}"'
            )
            plugin.long_service_output = (
                f'The following text from the "{config.filename}" certificate file '
                f"failed to parse and is provided here for troubleshooting purposes:"
                f"{EOL}{EOL}{util.force_str(leftover, errors='replace')}"
            )
            plugin.exit_status_code = constants.STATE_WARNING_EXIT_CODE
            return None
        return chain, None

    try:
        return fetch_chain(
            config.server, config.port, config.dns_name or config.server, config.timeout
        )
    except OSError as ex:
        logger.error(f"Error fetching certificates chain: {ex}")
        plugin.add_error(ex)
        plugin.service_output = (
            f"{constants.STATE_CRITICAL_LABEL}: Error fetching certificates from "
            f"port {config.port} on {config.server}"
        )
        plugin.exit_status_code = constants.STATE_CRITICAL_EXIT_CODE
        return None


def check_cert(config: CheckConfig, plugin: Plugin, now: datetime = None) -> None:
    """Retrieves the chain, runs every check and records the verdict on the plugin"""
    if config.emit_branding:
        plugin.branding_callback = branding
    loaded = _load_chain(config, plugin)
    if loaded is None:
        return
    chain, ip_address = loaded

    if not chain:
        logger.error("No certificates found")
        plugin.add_error(NoCertsFoundError("no certificates found"))
        plugin.service_output = (
            f"{constants.STATE_CRITICAL_LABEL}: 0 certificates found in {config.source}"
        )
        plugin.exit_status_code = constants.STATE_CRITICAL_EXIT_CODE
        return

    results = run_validation_checks(config, chain, now)
    plugin.add_perfdata(
        *chain_metrics.chain_perfdata(chain, config.age_critical, config.age_warning, now)
    )
    plugin.add_error(*results.errs(include_ignored=config.list_ignored_errors))
    state = results.state
    plugin.service_output = results.one_line_summary()
    verb = "found in" if config.filename else "retrieved for"
    plugin.long_service_output = (
        f"{len(chain)} certs {verb} {_chain_source(config, ip_address)}{EOL}{results.report()}"
    )
    plugin.exit_status_code = state.exit_code
    if results.has_failed:
        logger.error(
            f"validation checks failed for certificate chain: total={len(results)} "
            f"failed={results.num_failed} ignored={results.num_ignored} "
            f"successful={results.num_succeeded}"
        )
    else:
        logger.debug("No (non-ignored) problems with certificate chain detected")

    if config.emit_payload:
        payload = cert_chain_payload(
            chain,
            config,
            errors=plugin.errors,
            service_state=state,
            ip_address=ip_address,
            now=now,
        )
        plugin.set_encoded_payload_delimiter_left(config.payload_delimiter_left)
        plugin.set_encoded_payload_delimiter_right(config.payload_delimiter_right)
        plugin.add_payload_string(encode_cert_chain_payload(payload))


def new_plugin() -> Plugin:
    plugin = Plugin()
    plugin.set_errors_label(constants.PLUGIN_ERRORS_LABEL)
    plugin.set_detailed_info_label(constants.PLUGIN_DETAILED_INFO_LABEL)
    return plugin


def configuration_error(plugin: Plugin, err: Exception) -> None:
    logger.error(f"Error initializing application: {err}")
    plugin.add_error(err)
    plugin.service_output = f"{ServiceState.UNKNOWN.label}: Error initializing application"
    plugin.exit_status_code = ServiceState.UNKNOWN.exit_code

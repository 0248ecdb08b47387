import sys
import logging
import argparse
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

from . import check_cert, configuration_error, new_plugin
from .. import __version__, constants
from ..config import build_check_config, get_config, DEFAULT_CONFIG, CONFIG_PATH
from ..exceptions import ConfigurationError

__module__ = "certcheck.cli.__main__"

logger = logging.getLogger(__name__)
cli = argparse.ArgumentParser(
    prog="check_cert",
    description=f"Release {__version__} Nagios plugin evaluating the certificate chain of a TLS service or PEM file",
    add_help=False,
)


class _HelpAction(argparse._HelpAction):
    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help(sys.stderr)
        parser.exit(constants.STATE_UNKNOWN_EXIT_CODE)


class _CommaList(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        items = getattr(namespace, self.dest, None) or []
        for value in values:
            items.extend(item.strip() for item in value.split(",") if item.strip())
        setattr(namespace, self.dest, items)


def _add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-h", "--help", action=_HelpAction)
    parser.add_argument("--version", dest="show_version", action="store_true")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v",
        "--errors-only",
        help="set logging level to ERROR (default CRITICAL)",
        dest="log_level_error",
        action="store_true",
    )
    group.add_argument(
        "-vv",
        "--warning",
        help="set logging level to WARNING (default CRITICAL)",
        dest="log_level_warning",
        action="store_true",
    )
    group.add_argument(
        "-vvv",
        "--info",
        help="set logging level to INFO (default CRITICAL)",
        dest="log_level_info",
        action="store_true",
    )
    group.add_argument(
        "-vvvv",
        "--debug",
        help="set logging level to DEBUG (default CRITICAL)",
        dest="log_level_debug",
        action="store_true",
    )
    parser.add_argument(
        "--config-path",
        help=f"Provide the path to a configuration file (Default: {CONFIG_PATH}/{DEFAULT_CONFIG})",
        dest="config_file",
        default=None,
    )
    parser.add_argument(
        "-s",
        "--server",
        help="The fully-qualified domain name or IP Address of the remote system whose certificate chain should be checked",
        dest="server",
        default=None,
    )
    parser.add_argument(
        "-p",
        "--port",
        help=f"TCP port of the remote certificate-enabled service (Default: {constants.DEFAULT_PORT})",
        dest="port",
        type=int,
        default=None,
    )
    parser.add_argument(
        "-dn",
        "--dns-name",
        help="A fully-qualified domain name (sent via SNI) to validate the leaf certificate against instead of the server value",
        dest="dns_name",
        default=None,
    )
    parser.add_argument(
        "-f",
        "--filename",
        help="Fully-qualified path to a PEM formatted certificate file to check instead of a remote service",
        dest="filename",
        default=None,
    )
    parser.add_argument(
        "-se",
        "--sans-entries",
        help=f"One or many (comma separated) Subject Alternate Names expected for the leaf certificate, {constants.SKIP_SANS_CHECKS_KEYWORD} skips the check",
        dest="sans_entries",
        nargs="+",
        action=_CommaList,
        default=None,
    )
    parser.add_argument(
        "-w",
        "--age-warning",
        help=f"Number of days before certificate expiration to trigger a WARNING (Default: {constants.DEFAULT_AGE_WARNING})",
        dest="age_warning",
        type=int,
        default=None,
    )
    parser.add_argument(
        "-c",
        "--age-critical",
        help=f"Number of days before certificate expiration to trigger a CRITICAL (Default: {constants.DEFAULT_AGE_CRITICAL})",
        dest="age_critical",
        type=int,
        default=None,
    )
    parser.add_argument(
        "-t",
        "--timeout",
        help=f"Timeout in seconds for retrieving the certificate chain (Default: {constants.DEFAULT_TIMEOUT})",
        dest="timeout",
        type=int,
        default=None,
    )
    parser.add_argument(
        "--verbose",
        help="Include key identifiers and fingerprints in the certificate report",
        dest="verbose",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--omit-sans-list",
        help="Omit the SANs entries from the certificate report",
        dest="omit_sans_entries",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--list-ignored-errors",
        help="Include errors of ignored validation checks in the errors section",
        dest="list_ignored_errors",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--branding",
        help="Append a branding line to the plugin output",
        dest="emit_branding",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--payload",
        help="Append an encoded JSON payload of certificate metadata to the plugin output",
        dest="emit_payload",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--payload-with-full-chain",
        help="Include the original PEM certificate chain in the encoded payload",
        dest="emit_payload_with_full_chain",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--ignore-validation-result",
        help=f"One or many (comma separated) validation check results to ignore: {', '.join(sorted(constants.VALIDATION_KEYWORDS))}",
        dest="ignore_validation_results",
        nargs="+",
        action=_CommaList,
        default=None,
    )
    parser.add_argument(
        "--apply-validation-result",
        help=f"One or many (comma separated) validation check results to apply: {', '.join(sorted(constants.VALIDATION_KEYWORDS))}",
        dest="apply_validation_results",
        nargs="+",
        action=_CommaList,
        default=None,
    )
    parser.add_argument(
        "--ignore-weak-signature-algorithm",
        help="Ignore the result of the weak signature algorithm validation check",
        dest="ignore_validation_result_weak_signature",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--ignore-expired-intermediate-certs",
        help="Ignore expired intermediate certificates in the expiration validation check",
        dest="ignore_expired_intermediate",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--ignore-expired-root-certs",
        help="Ignore expired root certificates in the expiration validation check",
        dest="ignore_expired_root",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--ignore-expiring-intermediate-certs",
        help="Ignore expiring intermediate certificates in the expiration validation check",
        dest="ignore_expiring_intermediate",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--ignore-expiring-root-certs",
        help="Ignore expiring root certificates in the expiration validation check",
        dest="ignore_expiring_root",
        action="store_true",
        default=None,
    )
    parser.add_argument(
        "--ignore-hostname-verification-if-empty-sans",
        help="Skip hostname verification when the leaf certificate has no SANs entries",
        dest="ignore_hostname_verification_if_empty_sans",
        action="store_true",
        default=None,
    )


_add_arguments(cli)


CONFIG_KEYS = [
    "server",
    "port",
    "dns_name",
    "filename",
    "sans_entries",
    "age_warning",
    "age_critical",
    "timeout",
    "verbose",
    "omit_sans_entries",
    "list_ignored_errors",
    "emit_branding",
    "emit_payload",
    "emit_payload_with_full_chain",
    "ignore_validation_results",
    "apply_validation_results",
    "ignore_validation_result_weak_signature",
    "ignore_expired_intermediate",
    "ignore_expired_root",
    "ignore_expiring_intermediate",
    "ignore_expiring_root",
    "ignore_hostname_verification_if_empty_sans",
]


def configure_logging(args: argparse.Namespace) -> None:
    log_level = logging.CRITICAL
    if args.log_level_error:
        log_level = logging.ERROR
    if args.log_level_warning:
        log_level = logging.WARNING
    if args.log_level_info:
        log_level = logging.INFO
    if args.log_level_debug:
        log_level = logging.DEBUG

    # stdout carries the plugin output only
    handlers = [logging.StreamHandler(sys.stderr)]
    log_format = "%(asctime)s - %(name)s - [%(levelname)s] %(message)s"
    if sys.stderr.isatty():
        log_format = "%(message)s"
        handlers = [
            RichHandler(console=Console(stderr=True), rich_tracebacks=True)
        ]
    logging.basicConfig(format=log_format, level=log_level, handlers=handlers)


def _cli_values(args: argparse.Namespace) -> dict:
    return {key: getattr(args, key) for key in CONFIG_KEYS if getattr(args, key) is not None}


def main(argv: Union[list[str], None] = None):
    args = cli.parse_args(argv)
    if args.show_version:
        Console().print(f"check_cert=={__version__}")
        sys.exit(0)
    configure_logging(args)

    plugin = new_plugin()
    with plugin:
        try:
            config = build_check_config(
                get_config(custom_values=_cli_values(args), config_path=args.config_file)
            )
        except ConfigurationError as err:
            configuration_error(plugin, err)
            return
        try:
            check_cert(config, plugin)
        finally:
            plugin.annotate_errors()


if __name__ == "__main__":
    main()

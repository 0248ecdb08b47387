__module__ = "certcheck.constants"

STATE_OK_EXIT_CODE = 0
STATE_WARNING_EXIT_CODE = 1
STATE_CRITICAL_EXIT_CODE = 2
STATE_UNKNOWN_EXIT_CODE = 3
STATE_DEPENDENT_EXIT_CODE = 4

STATE_OK_LABEL = "OK"
STATE_WARNING_LABEL = "WARNING"
STATE_CRITICAL_LABEL = "CRITICAL"
STATE_UNKNOWN_LABEL = "UNKNOWN"
STATE_DEPENDENT_LABEL = "DEPENDENT"

# Renders correctly in both the Nagios Core and Nagios XI web UIs
CHECK_OUTPUT_EOL = " \n"

DEFAULT_ERRORS_LABEL = "ERRORS"
DEFAULT_THRESHOLDS_LABEL = "THRESHOLDS"
DEFAULT_DETAILED_INFO_LABEL = "DETAILED INFO"
DEFAULT_ENCODED_PAYLOAD_LABEL = "ENCODED PAYLOAD"
PLUGIN_ERRORS_LABEL = "VALIDATION ERRORS"
PLUGIN_DETAILED_INFO_LABEL = "VALIDATION CHECKS REPORT"

DEFAULT_PAYLOAD_DELIMITER_LEFT = "<~"
DEFAULT_PAYLOAD_DELIMITER_RIGHT = "~>"
DEFAULT_ENCODED_PAYLOAD_PATTERN = r"[\x21-\x75\x7A\s]+"
GZIP_MAGIC = b"\x1f\x8b"

PLUGIN_CRASH_SERVICE_OUTPUT = f"{STATE_CRITICAL_LABEL}: plugin crash detected. See details via web UI or run plugin manually via CLI."

DEFAULT_TIME_METRIC_LABEL = "time"
DEFAULT_TIME_METRIC_UOM = "ms"

PRIORITY_MODIFIER_MAXIMUM = 999
PRIORITY_MODIFIER_MEDIUM = 2
PRIORITY_MODIFIER_MINIMUM = 1
PRIORITY_MODIFIER_BASELINE = 0

BASELINE_PRIORITY_SANS_LIST = 1
BASELINE_PRIORITY_HOSTNAME = 2
BASELINE_PRIORITY_EXPIRATION = 3
BASELINE_PRIORITY_CHAIN_ORDER = 1
BASELINE_PRIORITY_ROOT = 1
BASELINE_PRIORITY_WEAK_SIGNATURE = 2

CHECK_NAME_EXPIRATION = "Expiration"
CHECK_NAME_HOSTNAME = "Hostname"
CHECK_NAME_SANS_LIST = "SANs List"
CHECK_NAME_CHAIN_ORDER = "Chain Order"
CHECK_NAME_ROOT = "Root"
CHECK_NAME_WEAK_SIGNATURE = "Weak Signature Algorithm"

VALIDATION_STATUS_FAILED = "failed"
VALIDATION_STATUS_IGNORED = "ignored"
VALIDATION_STATUS_SUCCESSFUL = "successful"

VALIDATION_KEYWORD_EXPIRATION = "expiration"
VALIDATION_KEYWORD_HOSTNAME = "hostname"
VALIDATION_KEYWORD_SANS = "sans"
VALIDATION_KEYWORD_CHAIN_ORDER = "chain-order"
VALIDATION_KEYWORD_ROOT = "root"
VALIDATION_KEYWORDS = frozenset(
    {
        VALIDATION_KEYWORD_EXPIRATION,
        VALIDATION_KEYWORD_HOSTNAME,
        VALIDATION_KEYWORD_SANS,
        VALIDATION_KEYWORD_CHAIN_ORDER,
        VALIDATION_KEYWORD_ROOT,
    }
)

SKIP_SANS_CHECKS_KEYWORD = "SKIPSANSCHECKS"

DEFAULT_PORT = 443
DEFAULT_TIMEOUT = 10
DEFAULT_AGE_WARNING = 30
DEFAULT_AGE_CRITICAL = 15

# keyed by dotted OID string, value is (name, reason)
KNOWN_WEAK_SIGNATURE_ALGORITHMS = {
    "1.2.840.113549.1.1.2": (
        "md2WithRSAEncryption",
        "MD2 is vulnerable to preimage attacks and was withdrawn by RFC 6149",
    ),
    "1.2.840.113549.1.1.3": (
        "md4WithRSAEncryption",
        "MD4 collisions can be computed by hand, RFC 6150 moved it to historic status",
    ),
    "1.2.840.113549.1.1.4": (
        "md5WithRSAEncryption",
        "MD5 collisions were used to forge a rogue CA certificate in 2008",
    ),
    "1.2.840.113549.1.1.5": (
        "sha1WithRSAEncryption",
        "SHA-1 chosen-prefix collisions are practical (SHAttered, 2017)",
    ),
    "1.3.14.3.2.29": (
        "sha1WithRSA",
        "SHA-1 chosen-prefix collisions are practical (SHAttered, 2017)",
    ),
    "1.2.840.10040.4.3": (
        "dsa-with-sha1",
        "SHA-1 chosen-prefix collisions are practical (SHAttered, 2017)",
    ),
    "1.2.840.10045.4.1": (
        "ecdsa-with-SHA1",
        "SHA-1 chosen-prefix collisions are practical (SHAttered, 2017)",
    ),
}

PAYLOAD_FORMAT_VERSION = 1

ROOT_CERT_FOUND_ADVICE = (
    "Root certificates are distributed to clients through their trust stores; "
    "clients ignore any root certificate sent by the server. Sending the root "
    "increases the size of every handshake and may cause errors on clients "
    "which treat an unexpected root as a misconfiguration. Consider removing "
    "the root certificate from the certificate chain configured for the service."
)

HOSTNAME_MISMATCH_ADVICE = (
    "Consider updating the service check or command definition to specify "
    "the website FQDN instead of the host FQDN using the DNS Name or server "
    "flags. E.g., use 'www.example.org' instead of 'host7.example.com' in "
    "order to allow the remote server to select the correct certificate "
    "instead of using the default certificate."
)

HOSTNAME_EMPTY_SANS_NOTE = (
    "NOTE: The option to ignore hostname verification when certificate "
    "Subject Alternate Names (SANs) list is empty has been specified."
    f"{CHECK_OUTPUT_EOL}{CHECK_OUTPUT_EOL}"
    "While viable as a short-term workaround for certificates missing SANs "
    "list entries, this is not recommended as a long-term fix. Instead, "
    "certificates missing SANs entries should be replaced in order to avoid "
    "hostname verification errors. Web browsers no longer use the CommonName "
    "field of certificates missing SANs entries for hostname verification."
)

WEAK_SIGNATURE_ADVICE = (
    "Certificates signed using MD2, MD4, MD5 or SHA-1 based signature "
    "algorithms are rejected by current clients. Request a replacement "
    "certificate signed with a SHA-2 family signature algorithm."
)

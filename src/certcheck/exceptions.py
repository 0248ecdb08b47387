from typing import Union

__module__ = "certcheck.exceptions"


class CheckCertError(Exception):
    """Root of every classified error raised or embedded by certcheck"""

    kind: str = "check-cert-error"

    def __init__(self, message: str = None):
        super().__init__(message or "")
        self.message = message or ""

    def __str__(self) -> str:
        if not self.message:
            return self.kind
        return f"{self.kind}: {self.message}"


class MissingValueError(CheckCertError, ValueError):
    kind = "missing-value"


class InvalidInputError(CheckCertError, ValueError):
    kind = "invalid-input"


class ExpiredCertFoundError(CheckCertError):
    kind = "expired-cert-found"


class ExpiringCertFoundError(CheckCertError):
    kind = "expiring-cert-found"


class HostnameMismatchError(CheckCertError):
    kind = "hostname-mismatch"


class SANsMismatchError(CheckCertError):
    kind = "sans-mismatch"


class MisorderedChainError(CheckCertError):
    kind = "misordered-chain"


class IncompleteChainError(CheckCertError):
    """Used when a chain holds a single certificate and order cannot be evaluated"""

    kind = "incomplete-chain"


class WeakSignatureError(CheckCertError):
    kind = "weak-signature"


class RootPresentInChainError(CheckCertError):
    kind = "root-present-in-chain"


class PayloadNotFoundError(CheckCertError, ValueError):
    kind = "payload-not-found"


class PayloadInvalidError(CheckCertError, ValueError):
    kind = "payload-invalid"


class PayloadRegexInvalidError(CheckCertError, ValueError):
    kind = "payload-regex-invalid"


class CompressedInputInvalidError(CheckCertError, ValueError):
    kind = "compressed-input-invalid"


class PanicDetectedError(CheckCertError):
    """Synthesized when an unhandled exception escapes the plugin context"""

    kind = "panic-detected"


class NoCertsFoundError(CheckCertError):
    kind = "no-certs-found"


class CertificateParseError(CheckCertError, ValueError):
    kind = "certificate-parse-error"


class ConfigurationError(CheckCertError, ValueError):
    kind = "configuration-error"


class TransportError(CheckCertError, ConnectionError):
    """Used when chain retrieval issues are encountered that are not validation related"""

    kind = "transport-error"


class AnnotatedError(CheckCertError):
    """Carries advice appended to the message of the error kept as __cause__"""

    kind = "annotated"

    def __str__(self) -> str:
        return self.message


def error_kind(err: Union[BaseException, None]) -> Union[str, None]:
    if err is None:
        return None
    if isinstance(err, AnnotatedError) and err.__cause__ is not None:
        return error_kind(err.__cause__)
    return getattr(err, "kind", None)

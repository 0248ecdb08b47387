import hashlib
import logging
from datetime import datetime
from typing import Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.x509 import extensions, oid, NameOID
from cryptography.hazmat.primitives.serialization import Encoding
from OpenSSL.crypto import X509

from . import util, constants

__module__ = "certcheck.certificate"

logger = logging.getLogger(__name__)


class Certificate:
    """Read-only view over a parsed X.509 certificate

    Chain position is not a property of the certificate, it is computed
    against the enclosing chain by certcheck.chain
    """

    def __init__(self, cert: Union[x509.Certificate, X509, bytes]) -> None:
        if isinstance(cert, X509):
            cert = cert.to_cryptography()
        elif isinstance(cert, (bytes, bytearray)):
            cert = x509.load_der_x509_certificate(bytes(cert))
        if not isinstance(cert, x509.Certificate):
            raise TypeError(f"unsupported certificate type {type(cert).__name__}")
        self._cert = cert

    def __eq__(self, other) -> bool:
        if not isinstance(other, Certificate):
            return NotImplemented
        return self.der == other.der

    def __hash__(self) -> int:
        return hash(self.der)

    def __repr__(self) -> str:
        return f"<Certificate subject={self.subject!r} serial={self.serial_number_hex}>"

    @property
    def cryptography(self) -> x509.Certificate:
        return self._cert

    @property
    def der(self) -> bytes:
        return self._cert.public_bytes(Encoding.DER)

    @property
    def pem(self) -> str:
        return util.force_str(self._cert.public_bytes(Encoding.PEM))

    @property
    def subject_name(self) -> x509.Name:
        return self._cert.subject

    @property
    def issuer_name(self) -> x509.Name:
        return self._cert.issuer

    @property
    def subject(self) -> str:
        return self._cert.subject.rfc4514_string()

    @property
    def issuer(self) -> str:
        return self._cert.issuer.rfc4514_string()

    @property
    def subject_common_name(self) -> str:
        return _first_attribute(self._cert.subject, NameOID.COMMON_NAME)

    @property
    def issuer_common_name(self) -> str:
        return _first_attribute(self._cert.issuer, NameOID.COMMON_NAME)

    @property
    def serial_number(self) -> int:
        return self._cert.serial_number

    @property
    def serial_number_hex(self) -> str:
        return util.format_serial_number(self._cert.serial_number)

    @property
    def not_before(self) -> datetime:
        return self._cert.not_valid_before_utc

    @property
    def not_after(self) -> datetime:
        return self._cert.not_valid_after_utc

    @property
    def signature_algorithm_oid(self) -> str:
        return self._cert.signature_algorithm_oid.dotted_string

    @property
    def signature_algorithm(self) -> str:
        algorithm_oid = self._cert.signature_algorithm_oid
        if algorithm_oid.dotted_string in constants.KNOWN_WEAK_SIGNATURE_ALGORITHMS:
            return constants.KNOWN_WEAK_SIGNATURE_ALGORITHMS[
                algorithm_oid.dotted_string
            ][0]
        # pylint: disable=protected-access
        return getattr(algorithm_oid, "_name", algorithm_oid.dotted_string)

    @property
    def has_weak_signature_algorithm(self) -> bool:
        return self.signature_algorithm_oid in constants.KNOWN_WEAK_SIGNATURE_ALGORITHMS

    @property
    def sha1_fingerprint(self) -> str:
        return util.bytes_to_delimited_hex(hashlib.sha1(self.der).digest())  # nosec

    @property
    def sha256_fingerprint(self) -> str:
        return util.bytes_to_delimited_hex(hashlib.sha256(self.der).digest())

    @property
    def sha512_fingerprint(self) -> str:
        return util.bytes_to_delimited_hex(hashlib.sha512(self.der).digest())

    @property
    def san(self) -> list[str]:
        try:
            return list(
                self._cert.extensions.get_extension_for_class(
                    x509.SubjectAlternativeName
                ).value.get_values_for_type(x509.DNSName)
            )
        except extensions.ExtensionNotFound as ex:
            logger.debug(ex, exc_info=True)
        return []

    @property
    def san_ip_addresses(self) -> list[str]:
        try:
            return [
                str(ip)
                for ip in self._cert.extensions.get_extension_for_class(
                    x509.SubjectAlternativeName
                ).value.get_values_for_type(x509.IPAddress)
            ]
        except extensions.ExtensionNotFound as ex:
            logger.debug(ex, exc_info=True)
        return []

    @property
    def subject_key_identifier(self) -> Union[bytes, None]:
        try:
            return self._cert.extensions.get_extension_for_oid(
                oid.ExtensionOID.SUBJECT_KEY_IDENTIFIER
            ).value.digest
        except extensions.ExtensionNotFound as ex:
            logger.debug(ex, exc_info=True)
        return None

    @property
    def authority_key_identifier(self) -> Union[bytes, None]:
        try:
            return self._cert.extensions.get_extension_for_oid(
                oid.ExtensionOID.AUTHORITY_KEY_IDENTIFIER
            ).value.key_identifier
        except extensions.ExtensionNotFound as ex:
            logger.debug(ex, exc_info=True)
        return None

    @property
    def is_self_issued(self) -> bool:
        return self._cert.issuer == self._cert.subject

    @property
    def display_name(self) -> str:
        """CommonName, or the first SANs entry when the CommonName is blank"""
        if self.subject_common_name:
            return self.subject_common_name
        sans = self.san
        return sans[0] if sans else ""

    def is_expired(self, now: datetime = None) -> bool:
        now = util.as_utc(now) if now else util.utcnow()
        return self.not_after < now

    def is_expiring(
        self, critical: datetime, warning: datetime, now: datetime = None
    ) -> bool:
        if self.is_expired(now):
            return False
        return self.not_after < util.as_utc(critical) or self.not_after < util.as_utc(
            warning
        )

    def is_directly_issued_by(self, issuer: "Certificate") -> bool:
        """Issuer DN matches the candidate subject and the signature verifies with its key"""
        if self._cert.issuer != issuer.subject_name:
            return False
        try:
            self._cert.verify_directly_issued_by(issuer.cryptography)
        except (ValueError, TypeError, InvalidSignature, UnsupportedAlgorithm) as ex:
            logger.debug(
                f"signature of {self.subject} not verified by {issuer.subject}: {ex}"
            )
            return False
        return True

    def max_lifespan_days(self) -> int:
        return (self.not_after - self.not_before).days

    def expires_in_days(self, now: datetime = None) -> float:
        now = util.as_utc(now) if now else util.utcnow()
        return (self.not_after - now).total_seconds() / 86400

    def life_remaining_percent(self, now: datetime = None) -> int:
        if self.is_expired(now):
            return 0
        lifespan = self.max_lifespan_days()
        if lifespan <= 0:
            return 0
        return int(int(self.expires_in_days(now)) / lifespan * 100)


def _first_attribute(name: x509.Name, attribute_oid: oid.ObjectIdentifier) -> str:
    attributes = name.get_attributes_for_oid(attribute_oid)
    if not attributes:
        return ""
    return util.force_str(attributes[0].value)

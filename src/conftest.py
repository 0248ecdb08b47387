from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from certcheck.certificate import Certificate

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)
# SHA-1 signed certificates generated with the openssl CLI
CERTS_DIR = Path(__file__).parent.parent / ".certs"


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Org"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def build_cert(
    subject: str,
    issuer: str,
    key,
    issuer_key,
    days_remaining: int,
    sans: list = None,
    ca: bool = False,
    lifespan_days: int = 100,
) -> Certificate:
    not_after = NOW + timedelta(days=days_remaining)
    not_before = not_after - timedelta(days=lifespan_days)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    )
    if sans:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in sans]),
            critical=False,
        )
    return Certificate(builder.sign(issuer_key, hashes.SHA256()))


@pytest.fixture(scope="session")
def keys():
    return {
        name: ec.generate_private_key(ec.SECP256R1())
        for name in ("leaf", "intermediate", "root")
    }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_chain(keys):
    """Builds leaf, intermediate and optionally root, in that order

    Days are counted from NOW, negative values are already expired.
    """

    def _make_chain(
        leaf_days: int = 90,
        intermediate_days: int = 900,
        root_days: int = 3000,
        include_root: bool = False,
        sans: tuple = ("www.example.com", "example.com"),
    ) -> list:
        leaf = build_cert(
            "www.example.com",
            "Example Intermediate CA",
            keys["leaf"],
            keys["intermediate"],
            leaf_days,
            sans=list(sans),
        )
        intermediate = build_cert(
            "Example Intermediate CA",
            "Example Root CA",
            keys["intermediate"],
            keys["root"],
            intermediate_days,
            ca=True,
            lifespan_days=1000,
        )
        chain = [leaf, intermediate]
        if include_root:
            chain.append(
                build_cert(
                    "Example Root CA",
                    "Example Root CA",
                    keys["root"],
                    keys["root"],
                    root_days,
                    ca=True,
                    lifespan_days=4000,
                )
            )
        return chain

    return _make_chain


@pytest.fixture(scope="session")
def weak_certs():
    """Root and leaf signed with ecdsa-with-SHA1, intermediate with SHA-256"""
    return {
        path.stem: Certificate(x509.load_pem_x509_certificate(path.read_bytes()))
        for path in CERTS_DIR.glob("*.pem")
    }


@pytest.fixture
def self_signed(keys):
    return build_cert(
        "self.example.com",
        "self.example.com",
        keys["leaf"],
        keys["leaf"],
        90,
        sans=["self.example.com"],
    )


@pytest.fixture
def pem_file(tmp_path):
    def _pem_file(chain: list, trailer: bytes = b"") -> str:
        path = tmp_path / "chain.pem"
        data = b"".join(
            cert.cryptography.public_bytes(serialization.Encoding.PEM) for cert in chain
        )
        path.write_bytes(data + trailer)
        return str(path)

    return _pem_file

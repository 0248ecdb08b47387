from setuptools import setup, find_packages

__version__ = "0.1.0"

install_requires = [
    "cryptography>=42.0",
    "pyOpenSSL",
    "rich",
    "validators",
    "idna",
    "pyyaml",
    "pydantic>=2.0",
]


setup(
    name="check-cert",
    version=__version__,
    description="Nagios plugin evaluating the certificate chain of a TLS service or PEM file.",
    classifiers=[
        "Operating System :: OS Independent",
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        "Topic :: System :: Monitoring",
    ],
    zip_safe=False,
    include_package_data=True,
    package_data={"certcheck.config": ["base.yaml"]},
    install_requires=install_requires,
    extras_require={
        "tests": ["pytest"],
    },
    entry_points={
        'console_scripts': ['check_cert=certcheck.cli.__main__:main'],
    },
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    long_description="""
# check-cert

Nagios plugin evaluating the certificate chain presented by a TLS service, or
read from a PEM file, and reporting a single service state.

## Basic Usage

`python3 -m pip install -U check-cert`

```sh
check_cert --server www.example.org --age-warning 30 --age-critical 15
check_cert --filename /etc/ssl/certs/chain.pem --apply-validation-result root,chain-order
```

## Validation checks

- Expiration, for every certificate in the chain with intermediate and root specific ignores
- Hostname, against the leaf certificate Subject Alternate Names
- SANs List, every required entry present on the leaf certificate
- Chain Order, each certificate followed by its issuer
- Root, no root certificate sent by the service
- Weak Signature Algorithm, no MD2, MD4, MD5 or SHA-1 signed non-root certificate

## Output

Standard Nagios plugin output: one line of service output, optional errors,
thresholds and detailed info sections, an optional encoded JSON payload of the
certificate metadata and performance data for the leaf and intermediate
certificates.
    """,
    long_description_content_type="text/markdown",
)

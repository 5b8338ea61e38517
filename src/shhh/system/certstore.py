"""Trusted root certificate sources."""

import re
import ssl
import sys
from typing import Iterable, List, Optional

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from shhh.modules.errors import ShhhError
from shhh.process import CommandError, CommandRunner, SubprocessRunner
from shhh.system.base import Certificate, CertStore, NotSupportedError

_PEM_CERT = re.compile(
    r"-----BEGIN CERTIFICATE-----\r?\n.+?\r?\n-----END CERTIFICATE-----",
    re.DOTALL,
)

DARWIN_KEYCHAINS = (
    "/System/Library/Keychains/SystemRootCertificates.keychain",
    "/Library/Keychains/System.keychain",
)


def load_der_certificate(der: bytes) -> Optional[Certificate]:
    """Parse a DER-encoded X.509 certificate, or None if it is malformed."""
    try:
        x509.load_der_x509_certificate(bytes(der))
    except ValueError:
        return None
    return Certificate(der=bytes(der))


def parse_pem_certificates(data: str) -> List[Certificate]:
    """Parse every CERTIFICATE block in a PEM document, skipping malformed ones."""
    certs = []
    for match in _PEM_CERT.finditer(data):
        try:
            cert = x509.load_pem_x509_certificate(match.group(0).encode("ascii"))
        except ValueError:
            continue
        certs.append(Certificate(der=cert.public_bytes(Encoding.DER)))
    return certs


def encode_pem(cert: Certificate) -> str:
    return ssl.DER_cert_to_PEM_cert(cert.der)


def dedupe(certs: Iterable[Certificate]) -> List[Certificate]:
    """Drop repeated certificates, keeping the first occurrence."""
    seen = set()
    unique = []
    for cert in certs:
        if cert.fingerprint in seen:
            continue
        seen.add(cert.fingerprint)
        unique.append(cert)
    return unique


class WindowsCertStore(CertStore):
    """Reads the ROOT and CA system stores."""

    STORES = ("ROOT", "CA")

    def system_roots(self) -> List[Certificate]:
        collected = []
        for store in self.STORES:
            try:
                entries = ssl.enum_certificates(store)  # type: ignore[attr-defined]
            except OSError:
                continue
            for der, encoding, _trust in entries:
                if encoding != "x509_asn":
                    continue
                cert = load_der_certificate(der)
                if cert is not None:
                    collected.append(cert)

        certs = dedupe(collected)
        if not certs:
            raise ShhhError("no certificates found in Windows certificate stores")
        return certs


class DarwinCertStore(CertStore):
    """Reads the macOS system keychains with the ``security`` tool."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or SubprocessRunner()

    def system_roots(self) -> List[Certificate]:
        collected = []
        for keychain in DARWIN_KEYCHAINS:
            try:
                result = self.runner.run("security", "find-certificate", "-a", "-p", keychain)
            except CommandError:
                # Keychain may not exist.
                continue
            collected.extend(parse_pem_certificates(result.stdout))

        certs = dedupe(collected)
        if not certs:
            raise ShhhError("no certificates found in system keychains")
        return certs


class UnsupportedCertStore(CertStore):
    def system_roots(self) -> List[Certificate]:
        raise NotSupportedError("system certificate store")


def new_cert_store() -> CertStore:
    """Create the certificate source for the running platform."""
    if sys.platform == "win32":
        return WindowsCertStore()
    if sys.platform == "darwin":
        return DarwinCertStore()
    return UnsupportedCertStore()

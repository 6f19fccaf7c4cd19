# certauthz/deps/cert_utils.py
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
from urllib.parse import unquote

from cryptography import x509
from starlette.datastructures import Headers
from starlette.types import Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateView:
    """DNS SANs of the peer's leaf certificate, in certificate order."""
    names: Tuple[str, ...] = ()
    present: bool = False


NO_CERTIFICATE = CertificateView()


def load_certificate_pem(pem: str) -> x509.Certificate:
    return x509.load_pem_x509_certificate(pem.encode("utf-8"))


def dns_names(cert: x509.Certificate) -> Tuple[str, ...]:
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return ()
    return tuple(san.value.get_values_for_type(x509.DNSName))


def view_from_pem(pem: Optional[str]) -> CertificateView:
    """Parse a PEM leaf certificate. Anything unparseable counts as no certificate."""
    if not pem:
        return NO_CERTIFICATE
    try:
        # extensions are decoded lazily, so a broken SAN only fails in dns_names()
        names = dns_names(load_certificate_pem(pem))
    except (ValueError, x509.DuplicateExtension, x509.UnsupportedGeneralNameType):
        logger.warning("Ignoring malformed client certificate")
        return NO_CERTIFICATE
    return CertificateView(names=names, present=True)


def view_from_chain(chain: Optional[Sequence[str]]) -> CertificateView:
    # first entry is the leaf
    if not chain:
        return NO_CERTIFICATE
    return view_from_pem(chain[0])


# ───────────────────────────────────────────────
# Request sources
# ───────────────────────────────────────────────
def tls_client_chain(scope: Scope) -> Optional[Sequence[str]]:
    """`client_cert_chain` from the ASGI TLS extension, if the server provides it."""
    tls = (scope.get("extensions") or {}).get("tls") or {}
    return tls.get("client_cert_chain")


def proxy_client_pem(
    scope: Scope,
    cert_header: str,
    verify_header: Optional[str] = "X-SSL-Client-Verify",
) -> Optional[str]:
    """
    PEM forwarded by a TLS-terminating proxy (nginx: $ssl_client_escaped_cert).

    Only trusted when the proxy reports a successful verification.
    """
    headers = Headers(scope=scope)
    if verify_header and headers.get(verify_header) != "SUCCESS":
        return None
    value = headers.get(cert_header)
    return unquote(value) if value else None


def certificate_view(
    scope: Scope,
    cert_header: Optional[str] = None,
    verify_header: Optional[str] = "X-SSL-Client-Verify",
) -> CertificateView:
    chain = tls_client_chain(scope)
    if chain:
        return view_from_chain(chain)
    if cert_header:
        return view_from_pem(proxy_client_pem(scope, cert_header, verify_header))
    return NO_CERTIFICATE

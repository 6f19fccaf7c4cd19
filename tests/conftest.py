"""Test helpers: throwaway client certificates and a TLS-aware server stand-in."""

from datetime import datetime, timedelta, timezone
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtensionOID, NameOID


def make_cert_pem(sans, extensions=()):
    """Self-signed client certificate with the given DNS SANs (no SAN extension when empty)."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "client")])
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=1))
    )
    if sans:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(s) for s in sans]),
            critical=False,
        )
    for ext in extensions:
        builder = builder.add_extension(ext, critical=False)
    cert = builder.sign(key, hashes.SHA256())
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def with_tls_chain(app, chain):
    """Inject the ASGI TLS extension the way a TLS-aware server would."""

    async def wrapper(scope, receive, send):
        if scope["type"] in ("http", "websocket") and chain is not None:
            scope = dict(scope)
            scope["extensions"] = {**(scope.get("extensions") or {}), "tls": {"client_cert_chain": chain}}
        await app(scope, receive, send)

    return wrapper


def make_broken_san_cert_pem():
    """Certificate whose SAN extension holds a truncated GeneralNames sequence."""
    garbage = x509.UnrecognizedExtension(ExtensionOID.SUBJECT_ALTERNATIVE_NAME, b"\x30\x03\x82\x01")
    return make_cert_pem([], extensions=[garbage])

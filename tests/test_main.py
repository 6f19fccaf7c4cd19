"""Tests for the application factory."""

import pytest
from fastapi.testclient import TestClient

from certauthz.errors import BothModesSpecified, NoModeSpecified
from certauthz.main import create_app

from conftest import make_cert_pem, with_tls_chain


class TestCreateApp:
    """Environment-configured application."""

    def test_requests_without_certificate_are_denied(self, monkeypatch):
        monkeypatch.delenv("MTLS_ALLOWED_REGEX", raising=False)
        monkeypatch.setenv("MTLS_ALLOWED_DOMAINS", "example.org,*.example.org")

        client = TestClient(create_app())

        for path in ("/", "/_debug/mtls"):
            response = client.get(path)
            assert response.status_code == 403
            assert response.text == "No matching DNSNames"

    def test_missing_configuration_fails_startup(self, monkeypatch):
        monkeypatch.delenv("MTLS_ALLOWED_REGEX", raising=False)
        monkeypatch.delenv("MTLS_ALLOWED_DOMAINS", raising=False)

        with pytest.raises(NoModeSpecified):
            create_app()

    def test_ambiguous_configuration_fails_startup(self, monkeypatch):
        monkeypatch.setenv("MTLS_ALLOWED_REGEX", "^example[.]org$")
        monkeypatch.setenv("MTLS_ALLOWED_DOMAINS", "example.org")

        with pytest.raises(BothModesSpecified):
            create_app()

    def test_debug_endpoint_echoes_sans(self, monkeypatch):
        monkeypatch.delenv("MTLS_ALLOWED_REGEX", raising=False)
        monkeypatch.setenv("MTLS_ALLOWED_DOMAINS", "*.example.org")
        chain = [make_cert_pem(["other.net", "api.example.org"])]

        client = TestClient(with_tls_chain(create_app(), chain))
        response = client.get("/_debug/mtls")

        assert response.status_code == 200
        assert response.json() == {"present": True, "dns_names": ["other.net", "api.example.org"]}
        assert client.get("/").json() == {"ok": True}

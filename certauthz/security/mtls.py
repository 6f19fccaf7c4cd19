# certauthz/security/mtls.py
import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, Request
from starlette.responses import PlainTextResponse
from starlette.status import HTTP_403_FORBIDDEN, WS_1008_POLICY_VIOLATION
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocketClose

from certauthz.config import MtlsConfig
from certauthz.deps.cert_utils import CertificateView, certificate_view
from certauthz.security.matcher import Matcher

logger = logging.getLogger(__name__)

DENY_DETAIL = "No matching DNSNames"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


# ───────────────────────────────────────────────
# Gate
# ───────────────────────────────────────────────
class CertAuthz:
    """Allow a client when any DNS SAN of its leaf certificate matches the allow-list."""

    def __init__(self, matcher: Matcher, name: str = "certauthz"):
        self.matcher = matcher
        self.name = name

    @classmethod
    def from_config(cls, config: MtlsConfig, name: str = "certauthz") -> "CertAuthz":
        gate = cls(Matcher.from_config(config), name)
        logger.info("%s: client certificate authorization by %s", name, gate.matcher.mode.value)
        return gate

    def authorize(self, view: CertificateView) -> Decision:
        if view.present:
            # first match wins, remaining SANs are not looked at
            for san in view.names:
                if self.matcher.matches(san):
                    logger.debug("%s: allowed by SAN %s", self.name, san)
                    return Decision.ALLOW
        logger.info("%s: denied, SANs=%s", self.name, list(view.names) if view.present else None)
        return Decision.DENY


# ───────────────────────────────────────────────
# ASGI middleware
# ───────────────────────────────────────────────
class CertAuthzMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        gate: CertAuthz,
        cert_header: Optional[str] = None,
        verify_header: Optional[str] = "X-SSL-Client-Verify",
    ):
        self.app = app
        self.gate = gate
        self.cert_header = cert_header
        self.verify_header = verify_header

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        view = certificate_view(scope, self.cert_header, self.verify_header)
        if self.gate.authorize(view) is Decision.ALLOW:
            await self.app(scope, receive, send)
            return

        if scope["type"] == "websocket":
            response = WebSocketClose(code=WS_1008_POLICY_VIOLATION, reason=DENY_DETAIL)
        else:
            response = PlainTextResponse(DENY_DETAIL, status_code=HTTP_403_FORBIDDEN)
        await response(scope, receive, send)


def build(
    config: MtlsConfig,
    next_app: ASGIApp,
    name: str = "certauthz",
    cert_header: Optional[str] = None,
    verify_header: Optional[str] = "X-SSL-Client-Verify",
) -> CertAuthzMiddleware:
    """Wrap `next_app` in an authorization gate. Raises ConfigError on bad config."""
    return CertAuthzMiddleware(
        next_app,
        CertAuthz.from_config(config, name),
        cert_header=cert_header,
        verify_header=verify_header,
    )


# ───────────────────────────────────────────────
# FastAPI dependency (per route instead of app-wide)
# ───────────────────────────────────────────────
def mtls_dependency(
    gate: CertAuthz,
    cert_header: Optional[str] = None,
    verify_header: Optional[str] = "X-SSL-Client-Verify",
):
    def require_mtls_client(request: Request) -> CertificateView:
        view = certificate_view(request.scope, cert_header, verify_header)
        if gate.authorize(view) is not Decision.ALLOW:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=DENY_DETAIL)
        # pass the SANs on so the route can use them
        return view

    return require_mtls_client

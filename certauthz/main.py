import json
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response

from certauthz.config import (
    LOG_LEVEL, MTLS_CERT_HEADER, MTLS_INSTANCE_NAME, MTLS_VERIFY_HEADER, config_from_env,
)
from certauthz.deps.cert_utils import certificate_view
from certauthz.security.mtls import CertAuthz, CertAuthzMiddleware

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


class UTF8JSONResponse(Response):
    media_type = "application/json; charset=utf-8"
    def render(self, content) -> bytes:
        return json.dumps(jsonable_encoder(content), ensure_ascii=False).encode("utf-8")


def create_app() -> FastAPI:
    # bad configuration stops startup here
    gate = CertAuthz.from_config(config_from_env(), MTLS_INSTANCE_NAME)

    app = FastAPI(title="certauthz", default_response_class=UTF8JSONResponse)
    app.add_middleware(
        CertAuthzMiddleware,
        gate=gate,
        cert_header=MTLS_CERT_HEADER,
        verify_header=MTLS_VERIFY_HEADER,
    )

    # SANs the gate saw for this caller
    @app.get("/_debug/mtls")
    def dbg(request: Request):
        view = certificate_view(request.scope, MTLS_CERT_HEADER, MTLS_VERIFY_HEADER)
        return {"present": view.present, "dns_names": list(view.names)}

    @app.get("/")
    def ping():
        return {"ok": True}

    return app

# debug.py
# Check SANs against the allow-list configured in the environment / .env
#   python debug.py sub.example.org other.example.com
#   python debug.py --pem client.pem
import sys

from certauthz.config import MTLS_INSTANCE_NAME, config_from_env
from certauthz.deps.cert_utils import CertificateView, view_from_pem
from certauthz.security.mtls import CertAuthz

if __name__ == "__main__":
    args = sys.argv[1:]
    if args[:1] == ["--pem"]:
        with open(args[1], encoding="utf-8") as f:
            view = view_from_pem(f.read())
    else:
        view = CertificateView(names=tuple(args), present=bool(args))

    gate = CertAuthz.from_config(config_from_env(), MTLS_INSTANCE_NAME)
    print("SANS:", list(view.names))
    print("DECISION:", gate.authorize(view).value)

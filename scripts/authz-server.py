#!/usr/bin/env python3
"""
envoy-authz - Authorization Server

Runs behind the proxy to answer authorization callouts:
- /healthz for orchestration health checks (no auth)
- Basic auth verification for everything else

Listens on port 8080
"""

import logging

from envoy_authz.auth import create_flask_authz_app
from envoy_authz.cli import configure_logging
from envoy_authz.config import LISTEN_PORT

configure_logging()

# Create Flask app (credentials read once from AUTH_USER / AUTH_PASS)
app = create_flask_authz_app()

if __name__ == '__main__':
    logging.getLogger('envoy_authz').info(f"authz listening on port {LISTEN_PORT}!")
    app.run(host='0.0.0.0', port=LISTEN_PORT, debug=False)

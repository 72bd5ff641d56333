"""
envoy-authz - Authorization Gate

Answers external authorization callouts from a proxy (Envoy ext_authz,
nginx auth_request):
- /healthz is always allowed, no credentials needed
- any other path needs Basic credentials matching AUTH_USER / AUTH_PASS

Every request is recorded (path + full header set) before the decision is
made. Headers are logged as received, Authorization included.
"""

import re
import hmac
import base64
import binascii
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Mapping, NamedTuple, Optional
from urllib.parse import urlsplit

from .config import AuthzConfig, HEALTH_CHECK_PATH

# Module-level logger for request records and decisions
logger = logging.getLogger('envoy_authz.auth')

# =============================================================================
# CREDENTIAL PARSING
# =============================================================================

# Token alphabet of the npm basic-auth parser: standard and URL-safe base64, padding optional
BASIC_AUTH_PATTERN = re.compile(r'^ *basic +([A-Za-z0-9._~+/-]+=*) *$', re.IGNORECASE)


class Credentials(NamedTuple):
    username: str
    password: str


def parse_basic_credentials(header: Optional[str]) -> Optional[Credentials]:
    """
    Decode a Basic Authorization header value.

    Args:
        header: Raw header value, e.g. "Basic YWRtaW46c2VjcmV0"

    Returns:
        Credentials if the header is a well-formed Basic header, None otherwise
    """
    if not header:
        return None

    match = BASIC_AUTH_PATTERN.match(header)
    if not match:
        return None

    # "." and "~" carry no base64 data; missing padding is restored
    token = match.group(1).replace('.', '').replace('~', '').rstrip('=')
    token += '=' * (-len(token) % 4)

    try:
        decoded = base64.b64decode(token, altchars=b'-_').decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        return None

    # Username ends at the first colon; the password may contain colons
    username, sep, password = decoded.partition(':')
    if not sep:
        return None

    return Credentials(username, password)


def encode_basic_credentials(username: str, password: str) -> str:
    """Build a Basic Authorization header value."""
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
    return f"Basic {token}"


def get_authorization_header(headers: Mapping[str, str]) -> Optional[str]:
    """Case-insensitive Authorization lookup (works for dicts and werkzeug Headers)."""
    for name, value in headers.items():
        if name.lower() == 'authorization':
            return value
    return None


# =============================================================================
# DECISIONS
# =============================================================================

class Decision(Enum):
    """Outcome of a single authorization check, with its HTTP response."""
    HEALTH_CHECK_OK = (200, 'OK')
    AUTHORIZED = (200, '')
    UNAUTHORIZED = (401, 'Unauthorized')

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body

    @property
    def allowed(self) -> bool:
        return self.status == 200


# =============================================================================
# REQUEST RECORDING
# =============================================================================

class RequestRecorder(ABC):
    """Receives every request before the gate decides on it."""

    @abstractmethod
    def record(self, path: str, headers: Mapping[str, str]):
        """Called once per request with its path and header set."""


class LoggingRecorder(RequestRecorder):
    """Logs the path and full header set of each request."""

    def __init__(self, log: logging.Logger = None):
        self.log = log or logger

    def record(self, path: str, headers: Mapping[str, str]):
        self.log.info(f"{path} {list(headers.items())}")


class NullRecorder(RequestRecorder):
    def record(self, path: str, headers: Mapping[str, str]):
        pass


# =============================================================================
# AUTHORIZATION GATE
# =============================================================================

def credentials_match(credentials: Credentials, config: AuthzConfig) -> bool:
    """Exact byte-for-byte comparison of both fields against the config."""
    if not config.is_complete:
        return False

    user_ok = hmac.compare_digest(credentials.username.encode('utf-8'),
                                  config.username.encode('utf-8'))
    pass_ok = hmac.compare_digest(credentials.password.encode('utf-8'),
                                  config.password.encode('utf-8'))
    return user_ok and pass_ok


class AuthorizationGate:
    """Decides health-check / authorized / unauthorized for one request."""

    def __init__(self, config: AuthzConfig, recorder: RequestRecorder = None):
        self.config = config
        self.recorder = recorder if recorder is not None else LoggingRecorder()

    def decide(self, path: str, headers: Mapping[str, str]) -> Decision:
        self.recorder.record(path, headers)

        if path == HEALTH_CHECK_PATH:
            return Decision.HEALTH_CHECK_OK

        credentials = parse_basic_credentials(get_authorization_header(headers))
        if credentials is None:
            logger.debug(f"No usable Basic credentials for {path}")
            return Decision.UNAUTHORIZED

        if credentials_match(credentials, self.config):
            return Decision.AUTHORIZED

        logger.debug(f"Credential mismatch for {path}")
        return Decision.UNAUTHORIZED


# =============================================================================
# FLASK INTEGRATION
# =============================================================================

def request_path(environ: Mapping[str, str]) -> str:
    """
    Path of the request as the client sent it.

    Werkzeug's request.path is percent-decoded with leading slashes merged, so
    "/health%7A" and "//healthz" would both read as "/healthz". The raw URI
    (set by the Werkzeug dev server and gunicorn) is used instead; PATH_INFO
    is the fallback.
    """
    raw_uri = environ.get('RAW_URI') or environ.get('REQUEST_URI')
    if not raw_uri:
        return environ.get('PATH_INFO') or '/'

    path = raw_uri.partition('?')[0]
    if not path.startswith('/'):
        # absolute-form request target (proxy style) or "*"
        path = urlsplit(path).path or path
    return path


def create_flask_authz_app(config: AuthzConfig = None, recorder: RequestRecorder = None):
    """
    Create the Flask app that answers authorization callouts.

    The config is resolved once here; handlers only read the gate. The
    decision is made in a before_request hook, which runs ahead of URL
    matching errors, so every method and every path reaches the gate.
    """
    from flask import Flask, Response, current_app, request

    if config is None:
        config = AuthzConfig.from_env()

    # No routes at all: the before_request hook answers every request
    app = Flask(__name__, static_folder=None)
    app.extensions['envoy_authz'] = AuthorizationGate(config, recorder)

    @app.before_request
    def authorize():
        gate = current_app.extensions['envoy_authz']
        decision = gate.decide(request_path(request.environ), request.headers)
        return Response(decision.body, status=decision.status, mimetype='text/plain')

    return app

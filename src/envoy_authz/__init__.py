"""envoy-authz - Basic-auth check-point for proxy authorization callouts."""

__version__ = "0.1.0"

from .config import AuthzConfig, LISTEN_PORT, HEALTH_CHECK_PATH
from .auth import (
    AuthorizationGate,
    Credentials,
    Decision,
    LoggingRecorder,
    NullRecorder,
    RequestRecorder,
    create_flask_authz_app,
    encode_basic_credentials,
    parse_basic_credentials,
)

__all__ = [
    "AuthzConfig",
    "LISTEN_PORT",
    "HEALTH_CHECK_PATH",
    "AuthorizationGate",
    "Credentials",
    "Decision",
    "LoggingRecorder",
    "NullRecorder",
    "RequestRecorder",
    "create_flask_authz_app",
    "encode_basic_credentials",
    "parse_basic_credentials",
]

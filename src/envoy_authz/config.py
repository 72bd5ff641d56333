"""Configuration management for envoy-authz."""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger('envoy_authz.config')

# Fixed listening port (not configurable)
LISTEN_PORT = 8080

HEALTH_CHECK_PATH = '/healthz'

ENV_USER = 'AUTH_USER'
ENV_PASS = 'AUTH_PASS'


@dataclass(frozen=True)
class AuthzConfig:
    """Credential pair the gate accepts."""
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.username is not None and self.password is not None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "AuthzConfig":
        """Build the config from AUTH_USER / AUTH_PASS.

        Unset variables stay None; an incomplete config authorizes nobody.
        """
        if environ is None:
            environ = os.environ

        config = cls(
            username=environ.get(ENV_USER),
            password=environ.get(ENV_PASS),
        )
        if not config.is_complete:
            missing = [name for name, value in ((ENV_USER, config.username), (ENV_PASS, config.password))
                       if value is None]
            logger.warning(f"{', '.join(missing)} not set - all credentials will be rejected")
        return config

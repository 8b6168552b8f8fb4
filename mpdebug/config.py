"""Connection settings for the multipart debugger.

Every setting may come from a command-line flag or, when the flag is
absent, from an environment variable:

    ENDPOINT=play.min.io:9000
    ACCESS_KEY=your-access-key
    SECRET_KEY=your-secret-key
    SECURE=1        # use HTTPS
    TRACE=1         # log requests and responses
    REGION=us-east-1
    TIMEOUT=30      # connect/read timeout in seconds

Boolean variables are enabled only by the exact value "1".
"""

import os
from typing import Mapping, Optional

from mpdebug.models import DEFAULT_REGION, ConnectionConfig


class ConfigError(Exception):
    """Raised when the connection settings are missing or invalid."""

    pass


ENV_ENDPOINT = "ENDPOINT"
ENV_ACCESS_KEY = "ACCESS_KEY"
ENV_SECRET_KEY = "SECRET_KEY"
ENV_SECURE = "SECURE"
ENV_TRACE = "TRACE"
ENV_REGION = "REGION"
ENV_TIMEOUT = "TIMEOUT"


def _pick(flag_value: Optional[str], env: Mapping[str, str], name: str) -> str:
    """Return the flag value if set, otherwise the environment value."""
    if flag_value:
        return flag_value
    return env.get(name, "")


def _switch(flag_value: bool, env: Mapping[str, str], name: str) -> bool:
    return bool(flag_value) or env.get(name) == "1"


def validate_endpoint(endpoint: str) -> str:
    """Check that the endpoint is a bare ``host[:port]``.

    Raises:
        ConfigError: If the endpoint is empty, carries a scheme,
                    or includes a path.
    """
    if not endpoint:
        raise ConfigError(
            f"No endpoint configured. Pass --endpoint or set {ENV_ENDPOINT}."
        )
    if "://" in endpoint:
        raise ConfigError(
            f"Endpoint must be host[:port] without a scheme, got '{endpoint}'. "
            "Use --secure to select HTTPS."
        )
    if "/" in endpoint:
        raise ConfigError(f"Endpoint cannot include a path, got '{endpoint}'")
    return endpoint


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        timeout = float(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid timeout '{raw}': expected seconds") from e
    if timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {raw}")
    return timeout


def load_connection(
    endpoint: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
    secure: bool = False,
    trace: bool = False,
    region: Optional[str] = None,
    timeout: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConnectionConfig:
    """Build connection settings from flag values with environment fallback.

    Args:
        endpoint: Service host, optionally with port.
        access_key: Access key for request signing.
        secret_key: Secret key for request signing.
        secure: Use HTTPS when True.
        trace: Enable request/response logging.
        region: Signing region.
        timeout: Connect and read timeout in seconds, as text.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        The resolved ConnectionConfig.

    Raises:
        ConfigError: If the endpoint or credentials are missing or invalid.
    """
    env = os.environ if environ is None else environ

    resolved_endpoint = validate_endpoint(_pick(endpoint, env, ENV_ENDPOINT))

    resolved_access = _pick(access_key, env, ENV_ACCESS_KEY)
    if not resolved_access:
        raise ConfigError(
            f"No access key configured. Pass --accesskey or set {ENV_ACCESS_KEY}."
        )

    resolved_secret = _pick(secret_key, env, ENV_SECRET_KEY)
    if not resolved_secret:
        raise ConfigError(
            f"No secret key configured. Pass --secretkey or set {ENV_SECRET_KEY}."
        )

    return ConnectionConfig(
        endpoint=resolved_endpoint,
        access_key=resolved_access,
        secret_key=resolved_secret,
        secure=_switch(secure, env, ENV_SECURE),
        trace=_switch(trace, env, ENV_TRACE),
        region=_pick(region, env, ENV_REGION) or DEFAULT_REGION,
        timeout=_parse_timeout(timeout if timeout else env.get(ENV_TIMEOUT)),
    )

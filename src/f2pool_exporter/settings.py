from __future__ import annotations

import argparse
import os
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from f2pool_exporter import __version__
from f2pool_exporter.api_client import DEFAULT_API_URL, DEFAULT_TIMEOUT_S
from f2pool_exporter.collector import ErrorPolicy
from f2pool_exporter.utils.exceptions import ConfigError

ENV_PREFIX = "F2POOL_EXPORTER_"

DEFAULT_LISTEN_ADDRESS = ":5896"
DEFAULT_METRICS_PATH = "/metrics"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(ENV_PREFIX + name, default)


def _env_flag(name: str) -> bool:
    return (_env(name, "") or "").strip().lower() in ("1", "true", "yes", "on")


class ExporterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    listen_address: str = DEFAULT_LISTEN_ADDRESS
    metrics_path: str = DEFAULT_METRICS_PATH
    resources: tuple[str, ...]
    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_TIMEOUT_S
    verify_tls: bool = False
    error_policy: ErrorPolicy = ErrorPolicy.SKIP
    log_level: str = "INFO"

    @property
    def host(self) -> str:
        return parse_listen_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.listen_address)[1]


def parse_resources(raw: str | None) -> tuple[str, ...]:
    """Split a comma separated resource list, dropping blank and repeated entries."""
    if not raw:
        return ()
    entries = (entry.strip() for entry in raw.split(","))
    return tuple(dict.fromkeys(entry for entry in entries if entry))


def parse_listen_address(address: str) -> tuple[str, int]:
    """Turn `:5896`, `host:port` or `[::1]:port` into (host, port)."""
    host, sep, port = address.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigError(f"Invalid listen address {address!r}, expected [host]:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ConfigError(f"Invalid listen address {address!r}, port out of range")
    return host or "0.0.0.0", port_number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="f2pool-exporter",
        description="Export f2pool account statistics as Prometheus metrics.",
    )
    parser.add_argument(
        "--listen-address",
        default=_env("LISTEN_ADDRESS", DEFAULT_LISTEN_ADDRESS),
        help="Address to listen on for web interface and telemetry (default: %(default)s)",
    )
    parser.add_argument(
        "--telemetry-path",
        dest="metrics_path",
        default=_env("TELEMETRY_PATH", DEFAULT_METRICS_PATH),
        help="Path to expose metrics of the exporter (default: %(default)s)",
    )
    parser.add_argument(
        "--resources",
        default=_env("RESOURCES", ""),
        help="Resources ({currency}/{user or address}) to retrieve, separated by commas",
    )
    parser.add_argument(
        "--api-url",
        default=_env("API_URL", DEFAULT_API_URL),
        help="Base URL of the f2pool API (default: %(default)s)",
    )
    parser.add_argument(
        "--request-timeout",
        default=_env("REQUEST_TIMEOUT", str(DEFAULT_TIMEOUT_S)),
        help="Timeout in seconds for each upstream request (default: %(default)s)",
    )
    parser.add_argument(
        "--verify-tls",
        action="store_true",
        default=_env_flag("VERIFY_TLS"),
        help="Verify the upstream TLS certificate chain (off by default)",
    )
    parser.add_argument(
        "--error-policy",
        choices=[p.value for p in ErrorPolicy],
        default=_env("ERROR_POLICY", ErrorPolicy.SKIP.value),
        help="On a failing resource: 'skip' it for the scrape, or 'exit' the exporter (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        type=str.upper,
        choices=LOG_LEVELS,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(argv: Sequence[str] | None = None) -> ExporterConfig:
    args = build_parser().parse_args(argv)

    resources = parse_resources(args.resources)
    if not resources:
        raise ConfigError("Resources required")

    if not args.metrics_path.startswith("/"):
        raise ConfigError(f"Telemetry path must start with '/', got {args.metrics_path!r}")

    parse_listen_address(args.listen_address)

    try:
        error_policy = ErrorPolicy(args.error_policy)
    except ValueError:
        raise ConfigError(f"Unknown error policy {args.error_policy!r}")

    try:
        request_timeout = float(args.request_timeout)
    except ValueError:
        raise ConfigError(f"Invalid request timeout {args.request_timeout!r}, expected seconds")
    if request_timeout <= 0:
        raise ConfigError(f"Request timeout must be positive, got {request_timeout}")

    # argparse does not check env-provided defaults against choices
    if args.log_level not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level {args.log_level!r}, expected one of {', '.join(LOG_LEVELS)}")

    return ExporterConfig(
        listen_address=args.listen_address,
        metrics_path=args.metrics_path,
        resources=resources,
        api_url=args.api_url,
        request_timeout=request_timeout,
        verify_tls=args.verify_tls,
        error_policy=error_policy,
        log_level=args.log_level,
    )

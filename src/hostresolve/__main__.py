"""CLI entry point for the hostresolve maintenance services.

Services can run in one-shot mode (``--once``) or continuously with a
Prometheus metrics server.

Examples:
    ```bash
    python -m hostresolve <service> [options]
    python -m hostresolve repairer --once
    python -m hostresolve sweeper --log-level DEBUG
    python -m hostresolve flusher --config config/services/flusher.yaml --once
    ```
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import ValidationError

from hostresolve.core import (
    ConfigurationError,
    NullObserver,
    PrometheusObserver,
    Store,
    StoreUnavailableError,
    start_metrics_server,
)
from hostresolve.core.base_service import BaseService, BaseServiceConfig
from hostresolve.core.logger import Logger, StructuredFormatter
from hostresolve.core.yaml import load_yaml
from hostresolve.models.constants import ServiceName
from hostresolve.resolve import ResolveCache
from hostresolve.services.flusher import Flusher
from hostresolve.services.repairer import Repairer
from hostresolve.services.sweeper import Sweeper


CONFIG_BASE = Path("config")
CORE_CONFIG = CONFIG_BASE / "store.yaml"

# Per-service ``pool:`` keys and the store config section each one lands in.
POOL_OVERRIDE_SECTIONS = {
    "user": "database",
    "password_env": "database",
    "min_size": "limits",
    "max_size": "limits",
    "application_name": "server_settings",
}


class ServiceEntry(NamedTuple):
    cls: type[BaseService[Any]]
    config_path: Path


SERVICE_REGISTRY: dict[str, ServiceEntry] = {
    name: ServiceEntry(cls, CONFIG_BASE / "services" / f"{name}.yaml")
    for name, cls in (
        (ServiceName.REPAIRER, Repairer),
        (ServiceName.SWEEPER, Sweeper),
        (ServiceName.FLUSHER, Flusher),
    )
}

logger = Logger("cli")


def build_cache(store: Store, config: BaseServiceConfig) -> ResolveCache:
    """Build the PostgreSQL-backed cache described by a service config.

    Operation counts go to Prometheus only when the service exposes metrics.
    """
    observer = PrometheusObserver() if config.metrics.enabled else NullObserver()
    return ResolveCache.from_store(store, config.resolve, observer)


async def _run_once(service_name: str, service: BaseService[Any]) -> int:
    try:
        async with service:
            await service.run()
    except Exception as e:  # CLI error boundary for one-shot mode
        logger.error(f"{service_name}_failed", error=str(e))
        return 1
    logger.info(f"{service_name}_completed")
    return 0


async def _run_continuously(service_name: str, service: BaseService[Any]) -> int:
    metrics_config = service.config.metrics
    metrics_server = await start_metrics_server(metrics_config)
    if metrics_config.enabled:
        logger.info(
            "metrics_server_started",
            host=metrics_config.host,
            port=metrics_config.port,
            path=metrics_config.path,
        )

    def on_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        service.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, on_signal, sig)

    try:
        async with service:
            await service.run_forever()
    except Exception as e:  # CLI error boundary for continuous mode
        logger.error(f"{service_name}_failed", error=str(e))
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await metrics_server.stop()
        if metrics_config.enabled:
            logger.info("metrics_server_stopped")
    return 0


async def run_service(
    service_name: str,
    service_class: type[BaseService[Any]],
    store: Store,
    service_dict: dict[str, Any],
    *,
    once: bool,
) -> int:
    """Build the cache and service from ``service_dict`` and run it.

    Args:
        service_name: Service identifier used for logging.
        service_class: The BaseService subclass to instantiate.
        store: Connected database facade.
        service_dict: Parsed service configuration (without ``pool`` key).
        once: Run a single cycle and exit instead of running continuously.

    Returns:
        Exit code: 0 for success, 1 for failure.

    Raises:
        ValidationError: ``service_dict`` does not fit ``CONFIG_CLASS``.
    """
    config = service_class.CONFIG_CLASS(**service_dict)
    service = service_class(cache=build_cache(store, config), config=config)
    if once:
        return await _run_once(service_name, service)
    return await _run_continuously(service_name, service)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hostresolve",
        description="Run a hostresolve maintenance service",
    )
    parser.add_argument("service", choices=list(SERVICE_REGISTRY), help="Service to run")
    parser.add_argument(
        "--config",
        type=Path,
        help="Service config path (default: config/services/<service>.yaml)",
    )
    parser.add_argument(
        "--store-config",
        type=Path,
        default=CORE_CONFIG,
        help=f"Store config path (default: {CORE_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Route all logging, including plain ``logging.getLogger()`` users,
    through one ``StructuredFormatter`` handler on the root logger.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; a missing file yields ``{}`` and a warning."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(str(path))


def _apply_pool_overrides(
    store_dict: dict[str, Any],
    pool_overrides: dict[str, Any] | None,
    service_name: str,
) -> None:
    """Merge a service's ``pool:`` section into the shared store configuration.

    Each key lands in the section named by ``POOL_OVERRIDE_SECTIONS``.
    ``application_name`` defaults to ``hostresolve_<service>``.
    """
    pool = store_dict.setdefault("pool", {})
    pool.setdefault("server_settings", {}).setdefault(
        "application_name", f"hostresolve_{service_name}"
    )
    for key, value in (pool_overrides or {}).items():
        section = POOL_OVERRIDE_SECTIONS.get(key)
        if section is None:
            logger.warning("pool_override_ignored", key=key, service=service_name)
            continue
        pool.setdefault(section, {})[key] = value


async def main(argv: list[str] | None = None) -> int:
    """Parse args, connect the store, and run the selected service."""
    args = parse_args(argv)
    setup_logging(args.log_level)
    entry = SERVICE_REGISTRY[args.service]

    try:
        store_dict = _load_yaml_dict(args.store_config)
        service_dict = _load_yaml_dict(args.config or entry.config_path)
        _apply_pool_overrides(store_dict, service_dict.pop("pool", None), args.service)
        store = Store.from_dict(store_dict)
    except (ConfigurationError, ValidationError) as e:
        logger.error("invalid_config", error=str(e))
        return 1

    try:
        async with store:
            return await run_service(
                service_name=args.service,
                service_class=entry.cls,
                store=store,
                service_dict=service_dict,
                once=args.once,
            )
    except StoreUnavailableError as e:
        logger.error("connection_failed", error=str(e))
        return 1
    except ValidationError as e:
        logger.error("invalid_config", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()

import sys
from typing import Optional, Sequence

from loguru import logger

from f2pool_exporter import __version__
from f2pool_exporter.server import serve
from f2pool_exporter.settings import load_config
from f2pool_exporter.utils.exceptions import ConfigError


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        config = load_config(argv)
    except ConfigError as e:
        logger.error(f"{e}")
        return 1

    logger.remove()
    logger.add(sys.stderr, level=config.log_level)

    logger.info(f"Version: {__version__}")
    logger.info(f"Resources: {list(config.resources)}")
    logger.info(f"Metrics Path: {config.metrics_path}")
    logger.info(f"Error policy: {config.error_policy.value}")
    if not config.verify_tls:
        logger.warning("Upstream TLS certificates are not verified")

    return serve(config)


if __name__ == "__main__":
    sys.exit(main())

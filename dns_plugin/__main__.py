"""
Main entry point for dns-plugin.

Connects to the configured plugin and prints the records it reports as JSON.
"""

import asyncio
import logging
import sys
from pathlib import Path

from dns_plugin import __version__
from dns_plugin.codec.codec import encode_endpoints
from dns_plugin.config.config import Config
from dns_plugin.provider.errors import PluginError
from dns_plugin.provider.plugin import PluginProvider


def setup_logging(log_level_name: str) -> None:
    """
    Configure the root logger for command line use.

    Args:
        log_level_name: Level name such as "info" or "debug"
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    # Set httpx logger level to WARNING unless root is DEBUG
    httpx_log_level = logging.DEBUG if log_level == logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_log_level)


async def main(argv=None) -> int:
    """Fetch and print the plugin's records. Returns the process exit code."""
    argv = sys.argv[1:] if argv is None else argv

    config_path = Path(argv[0]) if argv else None
    config = Config.from_yaml(config_path)

    setup_logging(config.log_level)
    logger = logging.getLogger("dns-plugin")
    logger.info(f"Starting dns-plugin v{__version__}")

    try:
        async with await PluginProvider.connect(
            config.plugin_url, timeout=config.plugin_timeout_seconds
        ) as provider:
            endpoints = await provider.records()
    except PluginError as e:
        logger.error(f"Could not list records from {config.plugin_url}: {e}")
        return 1

    logger.info(f"Plugin reported {len(endpoints)} records")
    print(encode_endpoints(endpoints))
    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutting down dns-plugin", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()

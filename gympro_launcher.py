#!/usr/bin/env python3
"""GymPro Launcher: entry point for the GymPro terminal client.

Thin wrapper around interfaces/cli/terminal.py that adds:
- Logging setup from config
- Data directory verification
- Pre-flight checks (warn-only, never block startup)
- SIGTERM handling for graceful shutdown

Run directly:
    python3 gympro_launcher.py

Or, once installed:
    gympro
"""

import asyncio
import logging
import os
import signal
import time
from pathlib import Path

BOOT_START = time.monotonic()

logger = logging.getLogger("gympro.launcher")

DATA_DIRS = ["data", "data/reports", "data/checkout"]


def setup_logging(level: str = "info"):
    """Configure the root logger."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # requests/urllib3 are chatty at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def ensure_data_dirs(config=None):
    """Create required data directories if they don't exist."""
    dirs = list(DATA_DIRS)
    if config is not None:
        dirs.append(config.reports.output_dir)
        if config.storage.path:
            dirs.append(str(Path(config.storage.path).parent))
    for d in dirs:
        Path(d).mkdir(parents=True, exist_ok=True)
    logger.info("Data directories verified")


def run_preflight(config) -> list[tuple[str, bool]]:
    """Quick pre-flight checks. Warn on failure, never block startup."""
    checks = [("config:" + key, False) for key in config.rejected]

    # The gateway script must not be fetched over plain http
    checks.append(("payments.checkout_script_url", config.payments.checkout_script_url.startswith("https://")))

    dirs = [config.reports.output_dir]
    if config.storage.path:
        dirs.append(str(Path(config.storage.path).parent))
    for d in dirs:
        p = Path(d)
        checks.append((f"dir:{d}", p.exists() and os.access(p, os.W_OK)))

    passed = sum(1 for _, ok in checks if ok)
    logger.info("Pre-flight: %d/%d checks passed", passed, len(checks))
    for name, ok in checks:
        if not ok:
            logger.warning("Pre-flight FAILED: %s", name)
    return checks


def install_signal_handlers():
    """SIGTERM exits cleanly; SIGINT stays with the REPL (it prints a hint)."""
    def handle_signal(signum, frame):
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        raise SystemExit(0)

    signal.signal(signal.SIGTERM, handle_signal)


def main():
    """Boot sequence, then hand over to the terminal."""
    from core.config import get_config
    config = get_config()
    setup_logging(config.logging.level)
    logger.info("GymPro launcher starting (API %s)", config.api.base_url)

    ensure_data_dirs(config)
    run_preflight(config)
    install_signal_handlers()

    from interfaces.cli.terminal import GymProTerminal
    terminal = GymProTerminal(config)
    logger.info("Boot completed in %.2fs", time.monotonic() - BOOT_START)
    asyncio.run(terminal.run())


if __name__ == "__main__":
    main()

# --- Standard library imports ---
import sys
import time
import logging
import argparse

# --- Project imports ---
from .config import Config
from .events import EventChannel
from .cache import ResolutionCache
from .mode import BootstrapMode, ModeKind
from .retry_policy import RetryPolicy
from .resolver import EndpointResolver
from .sanity import run_sanity_checks
from .controller import BootstrapController
from .connectivity import ConnectivityMonitor
from .device import read_device_fingerprint
from .logger import get_logger, setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="launch_arbiter",
        description="Decide between remote content and native fallback at launch",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear the cached endpoint before starting",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Exit after the initial decision instead of following changes",
    )
    return parser.parse_args(argv)

def render(mode: BootstrapMode) -> None:
    """
    Stand-in for the rendering collaborator: report which experience to show.
    """
    if mode.kind == ModeKind.INITIALIZING:
        experience = "splash"
    elif mode.is_remote:
        experience = "remote content"
    else:
        experience = "native screens"
    get_logger("render").info(f"🖥️  Presenting {experience} [{mode}]")

def main(argv=None) -> int:
    """
    Entry point for the launch arbiter.

    Builds every service explicitly, runs the startup decision and then
    follows connectivity until interrupted (unless --once).
    """
    args = parse_args(argv)

    # Setup logging policy
    setup_logging(level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))
    logger = get_logger("main")
    logger.info("🚀 Starting launch arbiter")
    logger.debug(f"Python version: {sys.version}")

    # Policy
    policy = RetryPolicy.from_config()
    run_sanity_checks(policy)

    # Services
    cache = ResolutionCache()
    if args.reset:
        cache.clear()

    device = read_device_fingerprint()
    logger.debug(f"Device fingerprint: {device}")

    resolver = EndpointResolver(cache, device, policy=policy)
    monitor = ConnectivityMonitor()
    endpoint_updates = EventChannel("endpoint_updated")
    controller = BootstrapController(resolver, cache, monitor, endpoint_updates)
    controller.subscribe(render)

    monitor.start()
    controller.start()

    try:
        mode = controller.wait_for_decision()
        logger.info(f"🧭 Launch decision [{mode}]")
        if args.once:
            return 0

        while True:
            time.sleep(1)

    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")

    finally:
        controller.stop(timeout=5)
        monitor.stop(timeout=5)

    return 0

if __name__ == "__main__":
    sys.exit(main())

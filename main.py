"""applog demo: emits sample entries through a configured Logger and prints live alerts."""

import argparse
import logging
import random
import signal
import sys
import threading
import time

from applog.config import load_config, load_yaml_config
from applog.errors import FolderUnavailable
from applog.levels import Severity
from applog.logger import Logger

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [applog] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


LEVELS = [Severity.INFO, Severity.INFO, Severity.INFO, Severity.DEBUG, Severity.WARNING, Severity.ERROR]
MESSAGES = {
    Severity.DEBUG: [
        "Entering request handler",
        "Token validation started",
    ],
    Severity.INFO: [
        "Request processed successfully",
        "Health check passed",
        "Cache hit for user session",
    ],
    Severity.WARNING: [
        "Slow query detected (>500ms)",
        "Connection pool nearing capacity",
    ],
    Severity.ERROR: [
        "Failed to connect to database",
        "Timeout waiting for upstream response",
    ],
}


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="applog demo emitter")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("--count", type=int, default=0,
                        help="Number of entries to emit (0 = until interrupted)")
    parser.add_argument("--interval", type=float, default=0.2,
                        help="Seconds between entries (default: 0.2)")
    return parser


def _print_alerts(subscription):
    for entry in subscription:
        print(f"[ALERT:{entry.level.label.upper()}] {entry.message}", flush=True)


def main(argv=None):
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    args = build_cli_parser().parse_args(argv)
    config = load_config(load_yaml_config(args.config))
    logger.info(
        "Config: app=%s, group=%s, min_level=%s, console=%s, max_files=%d, interval=%ss",
        config.app_identity, config.group_id, config.min_level.label, config.enable_console_sink,
        config.rotation.max_log_files, config.rotation.max_time_interval,
    )

    log = Logger(config)
    try:
        log.setup()
    except FolderUnavailable as exc:
        logger.error("Logging failure: %s", exc)
        sys.exit(1)

    subscription = log.subscribe()
    threading.Thread(target=_print_alerts, args=(subscription,), daemon=True).start()

    emitted = 0
    try:
        while _running and (args.count == 0 or emitted < args.count):
            level = random.choice(LEVELS)
            log.emit(random.choice(MESSAGES[level]), level, "main", __file__, 0)
            emitted += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass

    subscription.close()
    log.flush()
    logger.info("Stopped. Total entries emitted: %d (log file: %s)", emitted, log.log_file)


if __name__ == "__main__":
    main()

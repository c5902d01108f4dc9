"""Entry point for running the speedtest MQTT publisher."""

from __future__ import annotations

import argparse
import signal
import sys

from speedtest_mqtt import bootstrap


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish periodic speedtest results to MQTT")
    parser.add_argument("--config", default=None, help="Optional path to a config.yaml; environment variables win")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    context = bootstrap(args.config, log_level=args.log_level)

    def _handle_signal(signum, frame):
        context.shutdown()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    sys.exit(context.run())


if __name__ == "__main__":
    main()

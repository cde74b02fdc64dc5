from __future__ import annotations

import multiprocessing
import os
import sys

from handodds.core.config import SimConfig
from handodds.core.errors import ConfigError
from handodds.core.evaluator import estimate
from handodds.reporting import format_report
from handodds.utils.logging_config import get_logger, setup_logging


def main() -> int:
    # Required for multiprocessing support in frozen executables
    multiprocessing.freeze_support()

    try:
        setup_logging(
            log_level=os.environ.get("HANDODDS_LOG_LEVEL", "WARNING"),
            log_file=os.environ.get("HANDODDS_LOG_FILE") or None,
        )
    except ValueError as e:
        print(f"Invalid logging configuration: {e}", file=sys.stderr)
        return 2
    log = get_logger("handodds.app")

    try:
        config = SimConfig.from_env().validate()
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        return 2

    log.info("Configuration: %s", config)
    table = estimate(config)
    for line in format_report(table, config):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import logging
import sys
from pathlib import Path

from oms.application.container import build_container
from oms.config import get_app_paths, get_log_level
from oms.logging_config import setup_logging

log = logging.getLogger(__name__)


def run(argv: list[str]) -> Path:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=get_log_level())

    container = build_container(paths.db_path)

    target = Path(argv[0]) if argv else paths.base_dir / "profit_report.xlsx"
    container.reporting.export_profit_report_excel(str(target))
    log.info("report_written path=%s", target)
    return target


def main() -> None:
    run(sys.argv[1:])


if __name__ == "__main__":
    main()

import logging
import sys
from os import getenv

from dotenv import load_dotenv

from fit_steps.config import ConfigError, load_config
from fit_steps.enums import Command
from fit_steps.oauth_catcher import run_oauth_catcher
from fit_steps.report import run_report
from fit_steps.utils import configure_logging

# Load environment from .env (if present)
load_dotenv(encoding="utf-8")

LOG_FILE = getenv("LOG_FILE")


def main(argv: list[str] | None = None) -> int:
    configure_logging(LOG_FILE)
    args = sys.argv[1:] if argv is None else argv

    try:
        config = load_config()
    except ConfigError as e:
        logging.critical(str(e))
        return 1

    if Command.from_argv(args) is Command.GET_REFRESH_TOKEN:
        try:
            return run_oauth_catcher(config)
        except KeyboardInterrupt:
            print("\nStopped by user.")
            return 1

    try:
        run_report(config)
    except KeyboardInterrupt:
        print("\nStopped by user.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

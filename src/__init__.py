"""
Pike LSP bridge - language analysis for Pike source with embedded RXML.

This package bridges editor tooling to an out-of-process Pike analyzer and
maps its results onto exact document positions.
"""

import logging
import logging.handlers
import os
import sys
from dotenv import load_dotenv

# Configure logger for this module
logger = logging.getLogger(__name__)

# Load environment variables from .env file if present
load_dotenv()

if "pytest" not in sys.modules:
    PIKE_LSP_HOME = os.environ.get("PIKE_LSP_HOME", os.path.expanduser("~/.pike-lsp"))
else:
    PIKE_LSP_HOME = "/tmp/.pike-lsp"

def setup_logging() -> None:
    """
    Configure centralized logging for the entire application.

    This function sets up:
    - File logging for all messages in {PIKE_LSP_HOME}/logs/stdout.log
    - File logging for warnings and above in {PIKE_LSP_HOME}/logs/stderr.log
    - Console logging only if LOG_TO_CONSOLE=1 is set (disabled by default)

    The level is read once from LOG_LEVEL and never changed afterwards.
    """
    log_level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    log_dir = os.path.join(PIKE_LSP_HOME, "logs")
    os.makedirs(log_dir, exist_ok=True)

    stdout_log_file = os.path.join(log_dir, "stdout.log")
    stderr_log_file = os.path.join(log_dir, "stderr.log")

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Remove all existing handlers to prevent duplication
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(log_level)

    stdout_handler = logging.handlers.RotatingFileHandler(
        stdout_log_file,
        maxBytes=10485760,  # 10MB
        backupCount=3,
    )
    stdout_handler.setFormatter(formatter)
    stdout_handler.setLevel(log_level)

    stderr_handler = logging.handlers.RotatingFileHandler(
        stderr_log_file,
        maxBytes=10485760,  # 10MB
        backupCount=3,
    )
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # Editors talk to language servers over stdout, so console output goes to stderr
    if os.environ.get("LOG_TO_CONSOLE", "0") == "1":
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)
        logger.debug("Console logging enabled")

    logger.debug("Logging configured successfully")
    logger.debug(f"Standard output logs will be saved to {stdout_log_file}")
    logger.debug(f"Standard error logs will be saved to {stderr_log_file}")

setup_logging()

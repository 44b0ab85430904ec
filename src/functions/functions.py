import logging
import os
import random
import shlex
import string
import subprocess
import sys
from typing import Final

from .filter import SingleLineNonEmptyFilter


class Functions:
    CONFORMANCE_LOG: Final[str] = "CONFORMANCE"
    CLUSTER_LOG: Final[str] = "CLUSTER"
    TRAFFIC_LOG: Final[str] = "TRAFFIC"

    TRACE: Final[str] = "TRACE"
    DEBUG: Final[str] = "DEBUG"
    INFO: Final[str] = "INFO"
    WARN: Final[str] = "WARN"
    ERROR: Final[str] = "ERROR"
    FATAL: Final[str] = "FATAL"

    @staticmethod
    def setup_log(source):
        level = os.getenv(f"{source.name.upper()}_LOG_LEVEL", "").upper()
        level_importance = {
            Functions.TRACE: logging.DEBUG,
            Functions.DEBUG: logging.DEBUG,
            Functions.INFO: logging.INFO,
            Functions.WARN: logging.WARNING,
            Functions.ERROR: logging.ERROR,
            Functions.FATAL: logging.FATAL
        }
        selected_level = level_importance[level] if level in level_importance else logging.INFO

        # Re-running setup (tests do) must not stack handlers
        for handler in list(source.handlers):
            if getattr(handler, "_conformance_handler", False):
                source.removeHandler(handler)

        log_source_handler = logging.StreamHandler(sys.stdout)
        log_source_handler._conformance_handler = True
        log_source_formatter = logging.Formatter('%(name)s [%(asctime)s] %(levelname)s - %(message)s')
        log_source_handler.setFormatter(log_source_formatter)
        log_source_handler.addFilter(SingleLineNonEmptyFilter())
        source.setLevel(selected_level)
        source.addHandler(log_source_handler)
        return selected_level

    @staticmethod
    def load(filename):
        with open(filename) as content_file:
            return content_file.read()

    @staticmethod
    def random_name(prefix="", length=5):
        """Lowercase DNS-1123 friendly name, e.g. ``random_name("ic-")`` -> ``ic-x3k9a``."""
        chars = string.ascii_lowercase + string.digits
        return prefix + ''.join(random.choice(chars) for _ in range(length))

    @staticmethod
    def run_bash(log_source, command, stdin=None, timeout=None, log_output=False):
        """
        Run a command and return ``[return_code, stdout, stderr]``.

        A missing executable raises FileNotFoundError and a hung command raises
        subprocess.TimeoutExpired; callers translate both into their own errors.
        """
        if not isinstance(command, (list, tuple)):
            command = shlex.split(command)

        log_source.debug(f"Running: {shlex.join(command)}")
        process = subprocess.run(command,
                                 input=stdin,
                                 capture_output=True,
                                 text=True,
                                 timeout=timeout)

        stdout = process.stdout.rstrip("\n")
        stderr = process.stderr.rstrip("\n")
        log_source.info(stdout) if log_output and len(stdout) > 0 else None
        log_source.debug(stderr) if len(stderr) > 0 else None
        return [process.returncode, stdout, stderr]

# logger.py
import os
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def _format(record) -> str:
  line = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> <level>{level}</level>: {message}"
  if record["extra"]:
    line += " <dim>{extra}</dim>"
  return line + "\n{exception}"


logger.remove()
# enqueue keeps sink writes off the caller's path
logger.add(sys.stderr, level=LOG_LEVEL, format=_format, colorize=True, enqueue=True)

__all__ = ["logger"]

# revalidate.py
from typing import Callable, List

from logger import logger

Listener = Callable[[str], None]

_listeners: List[Listener] = []


def on_revalidate(listener: Listener) -> Listener:
  _listeners.append(listener)
  return listener


def remove_listener(listener: Listener) -> None:
  if listener in _listeners:
    _listeners.remove(listener)


def revalidate_path(path: str) -> None:
  """Tell every registered cache that the view at `path` is stale."""
  logger.bind(path=path).info("Revalidating cached view")
  for listener in list(_listeners):
    listener(path)

import asyncio

import pytest

import db
import revalidate


class FakeResult:
  def __init__(self, rows=None, scalar=None, rowcount=0):
    self._rows = [dict(r) for r in (rows or [])]
    self._scalar = scalar
    self.rowcount = rowcount

  def mappings(self):
    return self

  def all(self):
    return list(self._rows)

  def first(self):
    return self._rows[0] if self._rows else None

  def one(self):
    assert len(self._rows) == 1
    return self._rows[0]

  def scalar_one(self):
    return self._scalar

  def scalars(self):
    values = list(self._scalar or [])

    class _Scalars:
      def all(self):
        return values

    return _Scalars()


class FakeConnection:
  def __init__(self, responses):
    self._responses = responses
    self.executed = []
    self.commits = 0
    self.closes = 0
    self.overlapped = False
    self._busy = False

  async def execute(self, statement, params=None):
    if self._busy:
      self.overlapped = True
    self._busy = True
    try:
      self.executed.append((str(statement), params))
      # yield so concurrent callers would interleave here
      await asyncio.sleep(0)
      response = self._responses.pop(0) if self._responses else FakeResult()
      if isinstance(response, BaseException):
        raise response
      return response
    finally:
      self._busy = False

  async def commit(self):
    self.commits += 1

  async def close(self):
    self.closes += 1


class FakeEngine:
  def __init__(self, responses=None, connect_error=None):
    self.responses = list(responses or [])
    self.connect_error = connect_error
    self.connections = []

  def connect(self):
    return self._connect()

  async def _connect(self):
    if self.connect_error is not None:
      raise self.connect_error
    conn = FakeConnection(self.responses)
    self.connections.append(conn)
    return conn

  @property
  def connection(self):
    assert len(self.connections) == 1
    return self.connections[0]


@pytest.fixture
def fake_engine(monkeypatch):
  def install(*responses, connect_error=None):
    engine = FakeEngine(responses, connect_error=connect_error)
    monkeypatch.setattr(db, "get_engine", lambda: engine)
    return engine

  return install


@pytest.fixture
def revalidated():
  paths = []
  listener = revalidate.on_revalidate(paths.append)
  yield paths
  revalidate.remove_listener(listener)

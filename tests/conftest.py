import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# keep settings, logs and the default database out of the real user profile
_DATA_HOME = tempfile.mkdtemp(prefix="offline-queue-tests-")
os.environ["XDG_DATA_HOME"] = _DATA_HOME
os.environ["APPDATA"] = _DATA_HOME

import pytest  # noqa: E402

from services.action_store import ActionStore  # noqa: E402
from storage.db import create_store_engine  # noqa: E402


@pytest.fixture()
def engine(tmp_path):
    eng = create_store_engine(tmp_path / "queue.db")
    yield eng
    eng.dispose()


@pytest.fixture()
def store(engine):
    return ActionStore(engine)


@pytest.fixture()
def broken_store(tmp_path):
    # a directory cannot be opened as a SQLite database
    target = tmp_path / "not-a-database"
    target.mkdir()
    eng = create_store_engine(target)
    yield ActionStore(eng)
    eng.dispose()

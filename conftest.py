import os
import sys
import tempfile
from pathlib import Path

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ARCHIVE_LOCAL_DIR", str(Path(tempfile.gettempdir()) / "noah-archive-test"))
os.environ.setdefault("ARCHIVE_PRIMARY_BACKEND", "local")
os.environ.setdefault("ARCHIVE_READ_BACKEND", "local")


@pytest.fixture(autouse=True)
def reset_archive_service():
    from noah.archive.service import set_archive_service

    set_archive_service(None)
    yield
    set_archive_service(None)

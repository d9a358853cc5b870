import sys
from pathlib import Path

import pytest

# Make 'src' importable when the package is not installed
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from emitter.settings import SETTINGS  # noqa: E402


@pytest.fixture(autouse=True)
def lenient_settings(monkeypatch: pytest.MonkeyPatch):
    """Run every test with strict listener checks off unless it opts in."""
    monkeypatch.setattr(SETTINGS, "strict", False)
    yield SETTINGS

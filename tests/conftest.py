import pytest

from autoflags import ErrorHandling, FlagSet, flagset


@pytest.fixture
def command_line(monkeypatch):
    """Replace the default flag set with a fresh one that raises on errors."""
    fresh = FlagSet("test", ErrorHandling.RAISE)
    monkeypatch.setattr(flagset, "command_line", fresh)
    return fresh

"""
Pytest configuration and fixtures for Reliquary tests.
"""

import sys
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from reliquary.Config.schema import CONFIG_SCHEMA
from reliquary.FileGateway import FileGateway, GatewayConfig, InMemoryDocumentIndex


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def graph_root(temp_dir: Path) -> Path:
    """Create a graph directory with a few pages and journals."""
    root = temp_dir / "graphs" / "alice"
    (root / "pages").mkdir(parents=True)
    (root / "journals").mkdir()

    (root / "pages" / "readme.md").write_text("Hello World")
    (root / "journals" / "2026_10_19.md").write_text("- today")
    (root / ".hidden").write_text("secret")

    return root


@pytest.fixture
def index() -> InMemoryDocumentIndex:
    """Empty document index."""
    return InMemoryDocumentIndex()


@pytest.fixture
def gateway(graph_root: Path, index: InMemoryDocumentIndex) -> FileGateway:
    """Gateway confined to the sample graph."""
    return FileGateway(GatewayConfig(root=str(graph_root)), index)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every configuration variable, restoring them afterwards."""
    for field in CONFIG_SCHEMA:
        # setenv first so monkeypatch records the original state for undo
        monkeypatch.setenv(field.env_var, "")
        monkeypatch.delenv(field.env_var)
    return monkeypatch

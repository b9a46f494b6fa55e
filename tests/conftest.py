"""Global pytest configuration and fixtures."""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.utils import populate_tree


@pytest.fixture
def base_dir(tmp_path):
    """Host root holding a populated data directory named ``world``."""
    populate_tree(tmp_path / "world")
    return tmp_path


@pytest.fixture
def data_dir(base_dir):
    return base_dir / "world"


@pytest.fixture
def backup_dir(base_dir):
    return base_dir / "backups"

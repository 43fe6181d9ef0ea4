"""
pytest configuration for fixrepo tests.
Sets up Python path to resolve package imports and provides shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to Python path
# This allows imports like 'from fixrepo.consolidation import ...' without installing
repo_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(repo_root))

from fixrepo.consolidation.versions import VersionCatalog  # noqa: E402


@pytest.fixture
def small_catalog():
    """Four versions, no aliases."""
    return VersionCatalog([
        ("V.1", "1", 10),
        ("V.2", "2", 20),
        ("V.3", "3", 30),
        ("V.4", "4", 40),
    ])


@pytest.fixture
def aliased_catalog():
    """Four versions where V.3 shares the contents of V.2."""
    return VersionCatalog(
        [
            ("V.1", "1", 10),
            ("V.2", "2", 20),
            ("V.3", "T", 30),
            ("V.4", "4", 40),
        ],
        aliases={2: 1},
    )


@pytest.fixture
def nine_catalog():
    """Nine versions, no aliases."""
    return VersionCatalog([(f"V.{i}", str(i), (i + 1) * 100) for i in range(9)])

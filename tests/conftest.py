"""Shared fixtures for the PageTree Toolkit test-suite.

The sample tree used throughout (levels in brackets)::

    a [0]
    b [0]
      b1 [1]
        b1x [2]
      b2 [1]
    c [0]          section s1
      c1 [1]
    d [0]          section s1
"""

import logging
from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pagetree_toolkit.config import ConfigManager
from pagetree_toolkit.core.models import PageNode, PageTree, Section

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def sample_pages():
    return [
        PageNode("a", "A", order=0),
        PageNode("b", "B", order=1),
        PageNode("b1", "B1", parent_id="b", order=0),
        PageNode("b1x", "B1x", parent_id="b1", order=0),
        PageNode("b2", "B2", parent_id="b", order=1),
        PageNode("c", "C", order=2, section_id="s1"),
        PageNode("c1", "C1", parent_id="c", order=0),
        PageNode("d", "D", order=3, section_id="s1"),
    ]


@pytest.fixture
def sample_tree():
    return PageTree(sample_pages())


@pytest.fixture
def sample_sections():
    return [Section("s1", "Getting started"), Section("s2", "Reference")]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user config at a temp dir and drop any cached ConfigManager."""
    monkeypatch.setenv("PAGETREE_CONFIG_DIR", str(tmp_path / "config"))
    ConfigManager.reset()
    yield
    ConfigManager.reset()

"""Shared pytest fixtures."""

import os

import pytest

from fsmcp.tools.base import ToolContext
from fsmcp.tools.builtin import register_builtin_tools
from fsmcp.tools.builtin_tools.bash_tool import BashSession
from fsmcp.tools.builtin_tools.grep_backends import PythonSearcher
from fsmcp.tools.registry import ToolRegistry


@pytest.fixture
def sandbox(tmp_path):
    """An allowed directory, resolved so comparisons are not fooled by symlinked tmp dirs."""
    d = tmp_path / "allowed"
    d.mkdir()
    return os.path.realpath(d)


@pytest.fixture
def outside(tmp_path):
    d = tmp_path / "outside"
    d.mkdir()
    return os.path.realpath(d)


@pytest.fixture
def ctx(sandbox):
    return ToolContext(allowed_dirs=[sandbox], cwd=sandbox)


@pytest.fixture
def registry(sandbox):
    reg = ToolRegistry()
    register_builtin_tools(reg, session=BashSession(cwd=sandbox), searcher=PythonSearcher())
    return reg

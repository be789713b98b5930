"""
git-branch-shepherd - Merge, push and clean up short-lived Git branches
"""

from .__version__ import __version__
from .core.engine import BranchEngine
from .cli.main import main

__all__ = ["BranchEngine", "main", "__version__"]

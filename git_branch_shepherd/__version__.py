"""Version information for git-branch-shepherd."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("git-branch-shepherd")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0+unknown"

"""ruleforge: project analysis and rule adaptation for AI coding assistants."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ruleforge")
except PackageNotFoundError:
    __version__ = "dev"

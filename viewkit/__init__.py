"""viewkit - template, layout and partial rendering for controllers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("viewkit")
except PackageNotFoundError:
    __version__ = "dev"

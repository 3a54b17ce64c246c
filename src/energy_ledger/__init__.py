"""Energy Ledger: household meter readings, consumption and cost accounting."""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("energy-ledger")
except PackageNotFoundError:
    __version__ = "dev"

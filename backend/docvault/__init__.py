"""DocVault — folder-scoped file cache and upload orchestration."""

__version__ = "0.1.0"

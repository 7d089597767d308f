"""DocVault: shared document vault over object storage and a metadata table."""

__version__ = "0.1.0"

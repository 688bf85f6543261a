"""Cross-module reporting engine for the ERP dashboards."""

__version__ = "1.0.0"

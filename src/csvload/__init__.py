"""csvload — materialize a CSV upload into an Oracle table and bulk-load it."""

__version__ = "0.1.0"

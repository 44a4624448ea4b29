"""PyArrow schema for fleet report Parquet files."""

import pyarrow as pa

REPORT_COLUMNS = ["operation", "phase", "identity", "status", "message"]


def build_report_schema() -> pa.Schema:
    """One row per (phase, identity) result; every column is a string."""
    return pa.schema([pa.field(col, pa.string()) for col in REPORT_COLUMNS])


REPORT_SCHEMA = build_report_schema()

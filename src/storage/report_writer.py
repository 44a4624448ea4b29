"""Persist fleet reports as Parquet tables with a JSON summary."""

import json
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from src.orchestration.report import FleetReport
from src.storage.schema_definition import REPORT_COLUMNS, REPORT_SCHEMA


def report_frame(report: FleetReport) -> pd.DataFrame:
    return pd.DataFrame(report.rows(), columns=REPORT_COLUMNS)


class ReportWriter:
    """Writes <operation>.parquet and <operation>_summary.json into a directory."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def write(self, report: FleetReport) -> Path:
        """Write one fleet report.

        Returns:
            Path to the written Parquet file.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{report.operation}.parquet"

        table = pa.Table.from_pandas(report_frame(report), schema=REPORT_SCHEMA, preserve_index=False)
        pq.write_table(table, output_path, compression="snappy")

        summary = {
            "operation": report.operation,
            "passed": report.passed,
            "exit_code": report.exit_code,
            "failed_identities": report.failed_identities,
            "phases": {
                p.phase: {"ok": p.n_ok, "failed": p.n_failed, "skipped": p.n_skipped}
                for p in report.phases
            },
        }
        (self.output_dir / f"{report.operation}_summary.json").write_text(
            json.dumps(summary, indent=2) + "\n"
        )
        return output_path

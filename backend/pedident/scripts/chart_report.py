from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pedident.core.settings import settings
from pedident.services.chart_report_pdf import ReportPatient, build_chart_report_pdf, report_filename
from pedident.services.dental_analysis import analyze_dental_chart
from pedident.services.tooth_record import parse_tooth_states


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Analyse a saved dental chart (JSON) and optionally render the PDF report."
    )
    parser.add_argument(
        "chart",
        help="Path to a JSON file holding tooth states, or a chart export with a tooth_states key.",
    )
    parser.add_argument("--pdf", help="Write the PDF report to this path (a directory uses the default name).")
    parser.add_argument("--name", default="Unknown patient", help="Patient name for the report.")
    parser.add_argument("--ic-number", default="unknown", help="Patient IC number for the report.")
    parser.add_argument("--location", default=settings.default_location, help="Clinic location.")
    parser.add_argument("--dentist", default=None, help="Attending dentist.")
    return parser.parse_args(argv)


def _load_tooth_states(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    if isinstance(raw, dict) and "tooth_states" in raw:
        raw = raw["tooth_states"]
    if not isinstance(raw, dict):
        raise ValueError("expected an object keyed by tooth number")
    return raw


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        records = parse_tooth_states(_load_tooth_states(Path(args.chart)))
    except (OSError, ValueError) as exc:
        print(f"Cannot read chart {args.chart}: {exc}", file=sys.stderr)
        return 2

    analysis = analyze_dental_chart(records)
    print(json.dumps(analysis.as_dict(), indent=2))

    if args.pdf:
        patient = ReportPatient(
            name=args.name,
            ic_number=args.ic_number,
            location=args.location,
            dentist=args.dentist,
        )
        out_path = Path(args.pdf)
        if out_path.is_dir():
            out_path = out_path / report_filename(patient)
        out_path.write_bytes(
            build_chart_report_pdf(patient, records, analysis, title=settings.report_title)
        )
        print(f"Report written to {out_path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

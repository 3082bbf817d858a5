#!/usr/bin/env python3
"""Dataset generation script for performance testing.

Generates a synthetic certification CSV export with the same header layout as
the real platform export:

    First Name,Last Name,Email,Phone Number,Country,Accepted Membership,
    Accepted Marketing,Wallet Address,Partner Code,Percentage Completed,
    Created At,Completed At,Final Score,Final Grade,CA Status

A configurable share of rows is seeded with integrity problems (speed runs,
email aliases, disposable domains, shared wallets) so the integrity passes do
real work during throughput measurements.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

HEADERS = [
    "First Name",
    "Last Name",
    "Email",
    "Phone Number",
    "Country",
    "Accepted Membership",
    "Accepted Marketing",
    "Wallet Address",
    "Partner Code",
    "Percentage Completed",
    "Created At",
    "Completed At",
    "Final Score",
    "Final Grade",
    "CA Status",
]

COUNTRIES = ["Nigeria", "Kenya", "Ghana", "Brazil", "India", "Germany", "Unknown"]
PARTNERS = ["LAGOS01", "NAIROBI02", "ACCRA03", "SAOPAULO04", "BLR05", ""]
DATE_FMT = "%Y-%m-%d %H:%M:%S"


def generate_synthetic_data(rows: int, seed: int = 42, anomaly_rate: float = 0.05) -> pd.DataFrame:
    """Generate a DataFrame of certification rows.

    Args:
        rows: Number of data rows to generate
        seed: Random seed for reproducible data
        anomaly_rate: Share of rows seeded with an integrity problem

    Returns:
        DataFrame whose columns are ``HEADERS``
    """
    rng = np.random.default_rng(seed)
    idx = np.arange(rows)

    created = pd.Timestamp("2024-01-01") + pd.to_timedelta(
        rng.integers(0, 365 * 24 * 60, rows), unit="min"
    )
    hours_taken = rng.uniform(1, 24 * 30, rows)
    anomalies = rng.random(rows) < anomaly_rate
    # 異常行の一部は 30 分未満の完了 (Bot Activity)
    hours_taken = np.where(anomalies, rng.uniform(0.05, 3.9, rows), hours_taken)
    completed = created + pd.to_timedelta(hours_taken, unit="h")

    pct = rng.choice([0, 10, 45, 80, 100], rows, p=[0.2, 0.2, 0.2, 0.1, 0.3])
    passed = (pct == 100) & (rng.random(rows) < 0.85)
    pct = np.where(anomalies, 100, pct)
    passed = passed | anomalies

    domains = np.where(
        anomalies & (idx % 2 == 0),
        "mailinator.com",
        rng.choice(["gmail.com", "outlook.com", "proton.me"], rows),
    )
    local = np.array([f"dev{i}" for i in idx])
    local = np.where(anomalies & (idx % 3 == 0), np.char.add(local, "+alt"), local)

    wallets = np.array([f"0x{i:040x}" for i in idx])
    # 共有ウォレット (Sybil)
    wallets = np.where(anomalies & (idx % 5 == 0), "0x" + "ab" * 20, wallets)

    data = {
        "First Name": [f"First{i}" for i in idx],
        "Last Name": [f"Last{i}" for i in idx],
        "Email": np.char.add(np.char.add(local, "@"), domains),
        "Phone Number": [f"+234{i:09d}" for i in idx],
        "Country": rng.choice(COUNTRIES, rows),
        "Accepted Membership": rng.choice(["Yes", "No"], rows),
        "Accepted Marketing": rng.choice(["true", "false"], rows),
        "Wallet Address": wallets,
        "Partner Code": rng.choice(PARTNERS, rows),
        "Percentage Completed": pct,
        "Created At": created.strftime(DATE_FMT),
        "Completed At": np.where(pct == 100, completed.strftime(DATE_FMT), ""),
        "Final Score": np.where(passed, rng.integers(70, 101, rows), 0),
        "Final Grade": np.where(passed, "Pass", np.where(pct == 100, "Fail", "")),
        "CA Status": np.where(passed, "Issued", "Pending"),
    }
    return pd.DataFrame(data, columns=HEADERS)


def create_csv_file(
    output_path: Path,
    rows: int,
    seed: int = 42,
    anomaly_rate: float = 0.05,
    delimiter: str = ",",
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_synthetic_data(rows, seed, anomaly_rate)
    df.to_csv(output_path, sep=delimiter, index=False, encoding="utf-8")

    print(f"Created CSV file: {output_path}")
    print(f"  Rows: {rows:,} (+ 1 header row)")
    print(f"  Columns: {len(HEADERS)}")
    print(f"  Delimiter: {delimiter!r}")


def main(argv: list[str] | None = None) -> int:
    """Main CLI interface for dataset generation."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic certification CSV datasets for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate default 50k rows
  %(prog)s output.csv

  # Semicolon separated, 200k rows, 10% anomalies
  %(prog)s large.csv --rows 200000 --delimiter ";" --anomaly-rate 0.1
        """,
    )
    parser.add_argument("output", type=Path, help="Output CSV file path")
    parser.add_argument("--rows", type=int, default=50_000, help="Number of data rows (default: 50,000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data (default: 42)")
    parser.add_argument(
        "--anomaly-rate", type=float, default=0.05, help="Share of rows with integrity problems (default: 0.05)"
    )
    parser.add_argument("--delimiter", choices=[",", ";"], default=",", help="Field delimiter (default: ,)")
    parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be generated without creating files"
    )
    args = parser.parse_args(argv)

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.anomaly_rate <= 1:
        print("Error: --anomaly-rate must be between 0 and 1", file=sys.stderr)
        return 1

    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Rows: {args.rows:,}")
    print(f"  Anomaly rate: {args.anomaly_rate:.0%}")
    print(f"  Random seed: {args.seed}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate files but not creating them.")
        return 0

    try:
        create_csv_file(args.output, args.rows, args.seed, args.anomaly_rate, args.delimiter)
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

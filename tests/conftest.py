# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from devcert_ingest.logging.init import reset_logging

HEADER = (
    "First Name,Last Name,Email,Phone Number,Country,Accepted Membership,Accepted Marketing,"
    "Wallet Address,Partner Code,Percentage Completed,Created At,Completed At,Final Score,"
    "Final Grade,CA Status"
)

# 6 records + 1 skipped line:
#   Ada   clean
#   Bob   bot activity + alias + disposable + shared wallet
#   Doe   shared wallet, quoted first name, empty country
#   Eve   AM/PM repaired -> 1h speed run, no partner code
#   Dan   data error (still negative after repair)
#   Gus   unparseable created date
SAMPLE_ROWS = [
    "Ada,Lovelace,ada@company.com,+15550001,Nigeria,Yes,true,0xAAAAAAAAAAAA01,LAGOS01,100,"
    "2024-03-01 09:00:00,2024-03-05 09:00:00,92,Pass,Issued",
    "Bob,Smith,bob+alt@mailinator.com,,Kenya,No,false,0xSHAREDWALLET99,NAIROBI02,100,"
    "2024-03-02 10:00:00,2024-03-02 10:10:00,88,Pass,Issued",
    '"Doe, Jr.",John,john@x.com,,,yes,no,0xSHAREDWALLET99,NAIROBI02,45,'
    "2024-03-03 08:00:00,,0,,Pending",
    "Eve,Late,eve@company.com,,Ghana,no,no,n/a,,100,"
    "2024-03-04 14:00:00,2024-03-04 03:00:00,70,Pass,Issued",
    "Dan,Err,dan@company.com,,Ghana,no,no,,ACCRA03,100,"
    "2024-03-10 20:00:00,2024-03-09 09:00:00,60,Fail,Issued",
    "garbage",
    "Gus,NoDate,gus@company.com,,Brazil,no,no,,ACCRA03,10,not a date,,0,,Pending",
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    # ハンドラは作成時の sys.stdout を掴むため毎テストで作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DEVCERT_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """batch_size: 2
timezone: UTC
logs_dir: ./logs
speed_run_hours: 4
bot_activity_hours: 0.5
rapid_completion_hours: 5
min_wallet_length: 11
leaderboard_size: 10
disposable_domains:
  - mailinator.com
  - yopmail.com
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_csv_text() -> str:
    return "\n".join([HEADER, *SAMPLE_ROWS]) + "\n"


@pytest.fixture()
def sample_csv(temp_workdir: Path, sample_csv_text: str) -> Path:
    f = temp_workdir / "data" / "users.csv"
    f.write_text(sample_csv_text, encoding="utf-8")
    return f

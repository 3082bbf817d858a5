from __future__ import annotations

from devcert_ingest.cli.__main__ import EXIT_FATAL, EXIT_ROW_ISSUES, EXIT_SUCCESS_ALL

"""Exit code contract: 0 clean / 1 fatal / 2 completed with row issues."""


def test_exit_code_values():
    assert EXIT_SUCCESS_ALL == 0
    assert EXIT_FATAL == 1
    assert EXIT_ROW_ISSUES == 2

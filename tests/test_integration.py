"""Integration tests for end-to-end workflows."""

from ledgerkit.cli.main import cli


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_full_workflow(cli_runner, temp_db):
    """Test complete workflow: chart → period → intake → classify → post → correct → report → approve."""
    # Step 1: Standard chart and rules
    result = _invoke(cli_runner, temp_db, "init-chart", "1")
    assert result.exit_code == 0
    assert "Chart of accounts ready" in result.output

    # Step 2: March period
    result = _invoke(cli_runner, temp_db, "period", "create", "1", "P1", "2024-03")
    assert result.exit_code == 0
    assert "(2024-03-01 to 2024-03-31)" in result.output

    # Step 3: Statement lines
    lines = [
        ("01/03/2024", "BALANCE BROUGHT FORWARD", "--credit", "479,507.94"),
        ("05/03/2024", "ABC INSURANCE PREMIUM", "--debit", "1,200.00"),
        ("25/03/2024", "XG SALARIES", "--debit", "25,000.00"),
        ("28/03/2024", "ZZ MYSTERY VENDOR", "--debit", "300.00"),
    ]
    for day, description, side, amount in lines:
        result = _invoke(cli_runner, temp_db, "txn", "add", "1", day, description, side, amount)
        assert result.exit_code == 0, result.output

    # Step 4: Classify
    result = _invoke(cli_runner, temp_db, "classify", "1", "P1")
    assert result.exit_code == 0
    assert "Processed 4 transactions: 3 classified, 1 unclassified" in result.output
    assert "ZZ MYSTERY VENDOR" in result.output

    # Step 5: Post what is classified
    result = _invoke(cli_runner, temp_db, "generate", "1", "P1")
    assert result.exit_code == 0
    assert "Generated 3 entries (0 already posted, 1 unclassified, 0 failed)" in result.output
    assert "Period status: OPEN" in result.output

    # Step 6: Correct the leftover and post it
    result = _invoke(cli_runner, temp_db, "correct", "4", "9900")
    assert result.exit_code == 0
    assert "Transaction 4 classified as 9900" in result.output

    result = _invoke(cli_runner, temp_db, "generate", "1", "P1")
    assert result.exit_code == 0
    assert "Generated 1 entries (3 already posted, 0 unclassified, 0 failed)" in result.output
    assert "Period status: PROCESSED" in result.output

    # Step 7: Reports
    result = _invoke(cli_runner, temp_db, "balance", "1100", "1", "P1")
    assert result.exit_code == 0
    assert "453,007.94 DR" in result.output

    result = _invoke(cli_runner, temp_db, "trial-balance", "1", "P1")
    assert result.exit_code == 0
    assert "Trial balance is balanced." in result.output

    # Step 8: Approval locks the ledger until unlocked
    result = _invoke(cli_runner, temp_db, "period", "approve", "1", "P1")
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "reprocess", "1", "P1")
    assert result.exit_code == 1

    result = _invoke(cli_runner, temp_db, "period", "unlock", "1", "P1")
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "reprocess", "1", "P1")
    assert result.exit_code == 0
    assert "Deleted 4 system entries, kept 0 manual entries" in result.output
    assert "Classified 4/4, generated 4 entries" in result.output


def test_help_needs_no_database(cli_runner, tmp_path):
    """Test that --help works without touching the database."""
    db_path = tmp_path / "never-created.db"

    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])

    assert result.exit_code == 0
    assert "double-entry ledger" in result.output
    assert not db_path.exists()


def test_invalid_log_level(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--log-level", "chatty", "--db-path", temp_db.database_path, "period", "list", "1"]
    )

    assert result.exit_code == 2
    assert "Unknown log level" in result.output


def test_unknown_period(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "classify", "1", "P9")

    assert result.exit_code == 1
    assert "Period 'P9' not found for company 1" in result.output

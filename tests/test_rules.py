"""Tests for the rule store, rule ordering and matching."""

import pytest

from ledgerkit.cli.main import cli
from ledgerkit.domain.chart import STANDARD_RULES
from ledgerkit.domain.entities import MatchKind
from ledgerkit.domain.errors import NotFoundError, ValidationError
from ledgerkit.domain.rules import derive_pattern, matches, normalize_description


@pytest.fixture
def accounts(account_service, company_id):
    """Standard chart without the standard rules."""
    return {a.code: a for a in account_service.initialize_chart_of_accounts(company_id)}


@pytest.mark.parametrize(
    "pattern,kind,description,expected",
    [
        ("INSURANCE", MatchKind.CONTAINS, "ABC insurance premium", True),
        ("INSURANCE", MatchKind.CONTAINS, "ABC ASSURANCE", False),
        ("ABC INSURANCE", MatchKind.CONTAINS, "ABC   INSURANCE  PREMIUM", True),
        ("XG SALARIES", MatchKind.EQUALS, "xg salaries", True),
        ("XG SALARIES", MatchKind.EQUALS, "XG SALARIES MARCH", False),
        ("MAGTAPE", MatchKind.STARTS_WITH, "MAGTAPE CREDIT 0042", True),
        ("MAGTAPE", MatchKind.STARTS_WITH, "IB MAGTAPE", False),
        ("FEE", MatchKind.ENDS_WITH, "MONTHLY ACCOUNT FEE", True),
        ("FEE", MatchKind.ENDS_WITH, "FEE REVERSAL", False),
        (r"^POS \d{4}", MatchKind.REGEX, "pos 1234 checkers", True),
        (r"^POS \d{4}", MatchKind.REGEX, "ATM 1234", False),
    ],
)
def test_matches(pattern, kind, description, expected):
    """Test every match kind, case-insensitively."""
    assert matches(pattern, kind, description) is expected


def test_normalize_description():
    assert normalize_description("  abc\tinsurance   premium ") == "ABC INSURANCE PREMIUM"
    assert normalize_description(None) == ""


@pytest.mark.parametrize(
    "description,expected",
    [
        ("PAYMENT TO ABC INSURANCE 0042", ("ABC INSURANCE", MatchKind.CONTAINS)),
        ("XG SALARIES", ("SALARIES", MatchKind.CONTAINS)),
        ("DEBIT ORDER DISCOVERY HEALTH MEDICAL AID 12345", ("DISCOVERY HEALTH MEDICAL", MatchKind.CONTAINS)),
        ("IB PAYMENT 12345", ("IB PAYMENT 12345", MatchKind.EQUALS)),
    ],
)
def test_derive_pattern(description, expected):
    """Test picking the longest run of significant words."""
    assert derive_pattern(description) == expected


def test_derive_pattern_empty():
    with pytest.raises(ValidationError):
        derive_pattern("   ")


def test_create_rule_normalizes_pattern(rule_service, accounts, company_id):
    """Test that non-regex patterns are stored uppercase with single spaces."""
    rule = rule_service.create_rule(company_id, "  abc   insurance ", "8800", priority=5)

    assert rule.pattern == "ABC INSURANCE"
    assert rule.account_code == "8800"
    assert rule.account_id == accounts["8800"].id
    assert rule.name == "ABC INSURANCE"
    assert rule.is_active
    assert rule.usage_count == 0


def test_create_rule_keeps_regex_source(rule_service, accounts, company_id):
    rule = rule_service.create_rule(company_id, r"^POS \d+", "9900", match_kind=MatchKind.REGEX)
    assert rule.pattern == r"^POS \d+"


@pytest.mark.parametrize(
    "pattern,kind",
    [("", MatchKind.CONTAINS), ("   ", MatchKind.EQUALS), ("([", MatchKind.REGEX), ("", MatchKind.REGEX)],
)
def test_create_rule_rejects_bad_patterns(rule_service, accounts, company_id, pattern, kind):
    with pytest.raises(ValidationError):
        rule_service.create_rule(company_id, pattern, "8800", match_kind=kind)


def test_create_rule_unknown_account(rule_service, accounts, company_id):
    with pytest.raises(NotFoundError):
        rule_service.create_rule(company_id, "INSURANCE", "8899")


def test_create_rule_inactive_account(rule_service, account_service, accounts, company_id):
    """Test that inactive accounts cannot become rule targets."""
    account_service.deactivate_account(company_id, "8800")

    with pytest.raises(ValidationError, match="inactive"):
        rule_service.create_rule(company_id, "INSURANCE", "8800")


def test_priority_wins_over_specificity(rule_service, accounts, company_id):
    """Test that a higher priority CONTAINS rule beats an EQUALS rule."""
    rule_service.create_rule(company_id, "ABC INSURANCE", "8800", priority=1, match_kind=MatchKind.EQUALS)
    high = rule_service.create_rule(company_id, "INSURANCE", "9900", priority=10)

    assert rule_service.find_matching_rule(company_id, "ABC INSURANCE").id == high.id


def test_specificity_breaks_priority_ties(rule_service, accounts, company_id):
    """Test EQUALS over STARTS_WITH over CONTAINS over REGEX at equal priority."""
    regex = rule_service.create_rule(company_id, "INS", "9900", priority=5, match_kind=MatchKind.REGEX)
    contains = rule_service.create_rule(company_id, "INSURANCE", "9900", priority=5)
    starts = rule_service.create_rule(company_id, "ABC", "8700", priority=5, match_kind=MatchKind.STARTS_WITH)
    equals = rule_service.create_rule(company_id, "ABC INSURANCE", "8800", priority=5, match_kind=MatchKind.EQUALS)

    ordered = [r.id for r in rule_service.load_rules(company_id)]

    assert ordered == [equals.id, starts.id, contains.id, regex.id]
    assert rule_service.find_matching_rule(company_id, "ABC INSURANCE").id == equals.id


def test_longer_pattern_breaks_kind_ties(rule_service, accounts, company_id):
    """Test that overlapping patterns resolve to the more specific one."""
    short = rule_service.create_rule(company_id, "INSURANCE", "8800", priority=5)
    long = rule_service.create_rule(company_id, "VEHICLE INSURANCE", "8500", priority=5)

    assert rule_service.find_matching_rule(company_id, "OUTSURANCE VEHICLE INSURANCE").id == long.id
    assert rule_service.find_matching_rule(company_id, "HOME INSURANCE").id == short.id


def test_rule_id_breaks_remaining_ties(rule_service, accounts, company_id):
    """Test that the older rule wins when everything else is equal."""
    first = rule_service.create_rule(company_id, "RENT", "8200", priority=3)
    rule_service.create_rule(company_id, "FUEL", "8600", priority=3)

    assert rule_service.find_matching_rule(company_id, "RENT AND FUEL").id == first.id


def test_no_match_returns_none(rule_service, accounts, company_id):
    rule_service.create_rule(company_id, "RENT", "8200")
    assert rule_service.find_matching_rule(company_id, "SOMETHING ELSE") is None


def test_rules_are_per_company(rule_service, account_service, accounts, company_id):
    """Test that one company's rules never match another's transactions."""
    rule_service.create_rule(company_id, "RENT", "8200")
    account_service.initialize_chart_of_accounts(2)

    assert rule_service.find_matching_rule(2, "OFFICE RENT") is None


def test_deactivated_rule_stops_matching(rule_service, accounts, company_id):
    rule = rule_service.create_rule(company_id, "RENT", "8200")
    assert rule_service.find_matching_rule(company_id, "OFFICE RENT") is not None

    deactivated = rule_service.deactivate_rule(rule.id)

    assert deactivated.is_active is False
    assert rule_service.find_matching_rule(company_id, "OFFICE RENT") is None


def test_update_priority_reorders(rule_service, accounts, company_id):
    rent = rule_service.create_rule(company_id, "RENT", "8200", priority=1)
    office = rule_service.create_rule(company_id, "OFFICE", "9000", priority=2)
    assert rule_service.find_matching_rule(company_id, "OFFICE RENT").id == office.id

    rule_service.update_priority(rent.id, 3)

    assert rule_service.find_matching_rule(company_id, "OFFICE RENT").id == rent.id


def test_cache_is_reused_until_rules_change(rule_service, rule_cache, accounts, company_id):
    """Test that loads hit the cache and mutations invalidate it."""
    rule = rule_service.create_rule(company_id, "RENT", "8200")
    rule_service.load_rules(company_id)
    assert rule_cache.get(company_id) is not None

    rule_service.record_usage(rule.id)
    assert rule_cache.get(company_id) is not None

    rule_service.create_rule(company_id, "FUEL", "8600")
    assert rule_cache.get(company_id) is None
    assert len(rule_service.load_rules(company_id)) == 2


def test_cache_invalidate_all(rule_cache):
    rule_cache.put(1, [])
    rule_cache.put(2, [])

    rule_cache.invalidate()

    assert rule_cache.get(1) is None
    assert rule_cache.get(2) is None


def test_record_usage(rule_service, accounts, company_id):
    rule = rule_service.create_rule(company_id, "RENT", "8200")

    rule_service.record_usage(rule.id)
    rule_service.record_usage(rule.id)

    assert rule_service.get_rule(rule.id).usage_count == 2


def test_get_rule_missing(rule_service):
    with pytest.raises(NotFoundError, match="Rule 999 not found"):
        rule_service.get_rule(999)


def test_list_rules_inactive_last(rule_service, accounts, company_id):
    old = rule_service.create_rule(company_id, "RENT", "8200", priority=50)
    active = rule_service.create_rule(company_id, "FUEL", "8600")
    rule_service.deactivate_rule(old.id)

    assert [r.id for r in rule_service.list_rules(company_id)] == [active.id]
    assert [r.id for r in rule_service.list_rules(company_id, include_inactive=True)] == [active.id, old.id]


def test_initialize_standard_rules_is_idempotent(rule_service, accounts, company_id):
    created = rule_service.initialize_standard_rules(company_id)
    again = rule_service.initialize_standard_rules(company_id)

    assert len(created) == len(STANDARD_RULES)
    assert again == []
    assert len(rule_service.list_rules(company_id)) == len(STANDARD_RULES)


def test_initialize_standard_rules_needs_chart(rule_service, company_id):
    """Test that seeding rules without a chart fails and writes nothing."""
    with pytest.raises(NotFoundError):
        rule_service.initialize_standard_rules(company_id)

    assert rule_service.list_rules(company_id, include_inactive=True) == []


def test_rule_cli_add_list_deactivate(cli_runner, temp_db):
    """Test rule commands end to end."""
    cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-chart", "1", "--no-rules"])

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "rule", "add", "1", "insurance", "8800", "--priority", "8"],
    )
    assert result.exit_code == 0
    assert "Created rule 1: 'INSURANCE' -> 8800" in result.output

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "rule", "add", "1", "XG SALARIES", "8100", "--kind", "equals"],
    )
    assert result.exit_code == 0

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "rule", "list", "1"])
    assert result.exit_code == 0
    assert "INSURANCE" in result.output
    assert "EQUALS" in result.output
    # Priority 8 rule is listed first
    assert result.output.index("INSURANCE") < result.output.index("XG SALARIES")

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "rule", "deactivate", "1"])
    assert result.exit_code == 0
    assert "Rule 1 deactivated" in result.output


def test_rule_cli_invalid_regex(cli_runner, temp_db):
    cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-chart", "1", "--no-rules"])

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "rule", "add", "1", "([", "8800", "--kind", "REGEX"]
    )

    assert result.exit_code == 1
    assert "Invalid regular expression" in result.output


def test_rule_cli_deactivate_missing(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "rule", "deactivate", "42"])

    assert result.exit_code == 1
    assert "Rule 42 not found" in result.output

"""Tests for configuration helpers."""

from decimal import Decimal

from ledger_match.config import Settings, parse_comma_list, parse_key_value_pairs


def test_parse_comma_list_defaults() -> None:
    assert parse_comma_list(None, ["a"]) == ["a"]


def test_parse_comma_list_accepts_list() -> None:
    assert parse_comma_list(["x", "y"], ["a"]) == ["x", "y"]


def test_parse_comma_list_splits_string() -> None:
    assert parse_comma_list("x, y, ,z", ["a"]) == ["x", "y", "z"]


def test_parse_key_value_pairs_skips_malformed_items() -> None:
    assert parse_key_value_pairs("a=1, b , c=, =d,e=f=g") == {"a": "1", "e": "f=g"}


def test_parse_key_value_pairs_empty() -> None:
    assert parse_key_value_pairs(None) == {}


def test_matching_defaults() -> None:
    settings = Settings()
    assert settings.dedup_max_groups == 150
    assert settings.link_date_window_days == 7
    assert settings.link_amount_tolerance == Decimal("0.05")
    assert settings.link_candidate_limit == 50
    assert settings.link_capacity_inclusive is False


def test_matching_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DEDUP_MAX_GROUPS", "20")
    monkeypatch.setenv("LINK_AMOUNT_TOLERANCE", "0.02")
    monkeypatch.setenv("LINK_CAPACITY_INCLUSIVE", "true")

    settings = Settings()

    assert settings.dedup_max_groups == 20
    assert settings.link_amount_tolerance == Decimal("0.02")
    assert settings.link_capacity_inclusive is True


def test_cors_origins_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    assert Settings().cors_origins == ["https://a.example", "https://b.example"]

"""Tests for URL sanitizing and score decoding."""

import pytest

from linkcheck_agent.models import ClassificationStats
from linkcheck_agent.scoring import calculate_score, decode_results
from linkcheck_agent.urls import sanitize_url


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("https://good.example/x", "good.example"),
        ("http://bad.example/", "bad.example"),
        ("good.example", "good.example"),
        ("good.example/a/b?c=d", "good.example"),
        ("https://host.example:8443/path", "host.example:8443"),
        ("HTTPS://upper.example/x", "HTTPS:"),
        ("ftp://files.example/x", "ftp:"),
        ("", ""),
    ],
)
def test_sanitize_url(raw, expected):
    assert sanitize_url(raw) == expected


def test_sanitize_url_strips_only_one_scheme():
    assert sanitize_url("https://http://nested.example/") == "http:"


@pytest.mark.parametrize("raw", ["https://a.example/b", "a.example", "http://a.example", "a.example/"])
def test_sanitize_url_is_idempotent(raw):
    once = sanitize_url(raw)
    assert sanitize_url(once) == once


def test_score_all_harmless():
    assert calculate_score(96, 0, 0) == 99
    assert calculate_score(100, 0, 0) == 99


def test_score_no_engines():
    assert calculate_score(0, 0, 0) == 0


def test_score_malicious_counts_double():
    # 100 * (10 - 4 - 1) / 11 = 45.45...
    assert calculate_score(10, 2, 1) == 45


def test_score_unbounded_below():
    assert calculate_score(0, 5, 0) == -1000


def test_score_ties_round_away_from_zero():
    # 100 / 8 = 12.5 and -100 / 8 = -12.5
    assert calculate_score(7, 0, 6) == 13
    assert calculate_score(7, 0, 8) == -13
    # 19900 / 200 = 99.5
    assert calculate_score(199, 0, 0) == 100


def test_decode_results_safe_boundary():
    verdict = decode_results(ClassificationStats(harmless=96), "good.example")
    assert verdict.success is True
    assert verdict.url == "good.example"
    assert verdict.score == 99
    assert verdict.safe is True


def test_decode_results_empty_stats_unsafe():
    verdict = decode_results(ClassificationStats(), "new.example")
    assert verdict.score == 0
    assert verdict.safe is False
    assert verdict.success is True


def test_threshold_is_strict():
    # 1900 / 20 = 95 exactly
    at_threshold = decode_results(ClassificationStats(harmless=19), "a.example")
    assert at_threshold.score == 95
    assert at_threshold.safe is False

    # 2400 / 25 = 96
    above = decode_results(ClassificationStats(harmless=24), "a.example")
    assert above.score == 96
    assert above.safe is True

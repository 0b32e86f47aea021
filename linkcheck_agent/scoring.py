from __future__ import annotations

from .models import ClassificationStats, Verdict

# A host is safe only strictly above this score.
SAFE_THRESHOLD = 95


def _round_half_away(numerator: int, denominator: int) -> int:
    sign = -1 if numerator < 0 else 1
    return sign * ((2 * abs(numerator) + denominator) // (2 * denominator))


def calculate_score(harmless: int, malicious: int, suspicious: int) -> int:
    """Map provider engine counts to a score in (-inf, 100].

    score = round(100 * (harmless - 2*malicious - suspicious) / (harmless + 1))

    Ties round half away from zero (12.5 -> 13, -12.5 -> -13).
    """
    return _round_half_away(100 * (harmless - 2 * malicious - suspicious), harmless + 1)


def decode_results(stats: ClassificationStats, url: str) -> Verdict:
    score = calculate_score(stats.harmless, stats.malicious, stats.suspicious)
    return Verdict(success=True, url=url, score=score, safe=score > SAFE_THRESHOLD)

"""Dashboard aggregates computed over the replayed visit log."""

from collections import Counter
from collections.abc import Iterable
from typing import Any

from beacon.models.visits import VisitStats


def summarize_visits(records: Iterable[dict[str, Any]]) -> VisitStats:
    """Count visits and languages.

    Records are expected newest first, as returned by the log store. Records
    without a language are counted in the total only. On a tie the language
    seen first wins.
    """
    total = 0
    languages: Counter[str] = Counter()
    for record in records:
        total += 1
        language = record.get("language")
        if isinstance(language, str) and language:
            languages[language] += 1
    top = languages.most_common(1)
    return VisitStats(
        total=total,
        top_language=top[0][0] if top else None,
        languages=dict(languages),
    )

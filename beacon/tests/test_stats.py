from beacon.stats import summarize_visits


def test_empty_log():
    stats = summarize_visits([])
    assert stats.total == 0
    assert stats.top_language is None
    assert stats.languages == {}


def test_counts_and_top_language():
    records = [{"language": "en-US"}, {"language": "ro-RO"}, {"language": "ro-RO"}]
    stats = summarize_visits(records)
    assert stats.total == 3
    assert stats.top_language == "ro-RO"
    assert stats.languages == {"en-US": 1, "ro-RO": 2}


def test_records_without_language_count_in_total_only():
    stats = summarize_visits([{"path": "/"}, {"language": ""}, {"language": None}, {"language": "de"}])
    assert stats.total == 4
    assert stats.languages == {"de": 1}


def test_tie_goes_to_newest_language():
    # Newest first, as replayed from the log
    stats = summarize_visits([{"language": "fr"}, {"language": "en"}, {"language": "en"}, {"language": "fr"}])
    assert stats.top_language == "fr"

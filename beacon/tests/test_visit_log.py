import json

import pytest

from beacon.db.visit_log import VisitLogCorruptError, VisitLogStore, encode_record


@pytest.fixture
def store(tmp_path):
    return VisitLogStore(tmp_path / "visits.log")


def test_read_all_missing_file_is_empty(store):
    assert store.read_all() == []
    assert not store.exists()


def test_append_creates_file_and_parent(tmp_path):
    store = VisitLogStore(tmp_path / "nested" / "dir" / "visits.log")
    store.append({"path": "/"})
    assert store.exists()
    assert store.read_all() == [{"path": "/"}]


def test_append_writes_one_ascii_line_per_record(store):
    store.append({"path": "/a", "note": "line\nbreak"})
    store.append({"path": "/b", "title": "Încălzire"})

    lines = store.path.read_text(encoding="utf-8").split("\n")
    assert lines[-1] == ""
    assert len(lines) == 3
    assert json.loads(lines[0])["note"] == "line\nbreak"
    assert lines[1].isascii()
    assert json.loads(lines[1])["title"] == "Încălzire"


def test_unicode_line_separators_round_trip(store):
    store.append({"r": "a\u2028b\x85c\u2029d"})
    store.append({"n": 2})

    assert store.read_all() == [{"n": 2}, {"r": "a\u2028b\x85c\u2029d"}]


def test_raw_unicode_separator_inside_line_is_not_a_record_break(store):
    store.path.write_text('{"r": "a\u2028b"}\n', encoding="utf-8")
    assert store.read_all() == [{"r": "a\u2028b"}]


def test_lone_surrogate_is_rejected_before_writing(store):
    with pytest.raises(UnicodeEncodeError):
        store.append({"path": "\ud800"})
    assert not store.exists()


def test_encode_record_is_single_line():
    line = encode_record({"r": "a\u2028b\nc\x85"})
    assert "\n" not in line
    assert line.isascii()


def test_read_all_newest_first(store):
    for i in range(3):
        store.append({"n": i})
    assert [r["n"] for r in store.read_all()] == [2, 1, 0]


def test_read_all_skips_blank_lines(store):
    store.path.write_text('{"n": 1}\n\n{"n": 2}\n\n', encoding="utf-8")
    assert store.read_all() == [{"n": 2}, {"n": 1}]


def test_empty_file_is_empty_log(store):
    store.path.write_text("", encoding="utf-8")
    assert store.read_all() == []


def test_malformed_line_aborts_whole_read(store):
    store.append({"n": 1})
    with store.path.open("a", encoding="utf-8") as fh:
        fh.write('{"n": 2\n')
    store.append({"n": 3})

    with pytest.raises(VisitLogCorruptError) as exc_info:
        store.read_all()
    assert exc_info.value.line_no == 2


def test_non_object_line_is_corrupt(store):
    store.path.write_text('{"n": 1}\n[1, 2]\n', encoding="utf-8")
    with pytest.raises(VisitLogCorruptError, match="not a JSON object"):
        store.read_all()


def test_append_to_directory_raises_oserror(tmp_path):
    (tmp_path / "visits.log").mkdir()
    store = VisitLogStore(tmp_path / "visits.log")
    with pytest.raises(OSError):
        store.append({"n": 1})

import time

from gallery.utils.ids import _base36, new_id


def test_base36():
    assert _base36(0) == "0"
    assert _base36(35) == "z"
    assert _base36(36) == "10"
    assert int(_base36(1_700_000_000_000), 36) == 1_700_000_000_000


def test_prefix_and_timestamp():
    before = time.time_ns() // 1_000_000
    media_id = new_id("med_")
    after = time.time_ns() // 1_000_000

    assert media_id.startswith("med_")
    stamp = int(media_id[len("med_"):-12], 36)
    assert before <= stamp <= after
    int(media_id[-12:], 16)  # random tail is hex


def test_unique_under_rapid_calls():
    ids = {new_id() for _ in range(5000)}
    assert len(ids) == 5000

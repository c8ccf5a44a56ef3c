from datetime import datetime, timedelta, timezone

from datetime_utils import UTC, ensure_utc, epoch_millis, format_local


def test_epoch_millis_keeps_millisecond_precision():
    moment = datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=UTC)
    assert epoch_millis(moment) == 1714566615250


def test_epoch_millis_defaults_to_now():
    before = epoch_millis()
    after = epoch_millis()
    assert 0 <= after - before < 1000


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2024, 1, 1, 0, 0)
    assert ensure_utc(naive).tzinfo is UTC
    shifted = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
    assert ensure_utc(shifted) == datetime(2024, 1, 1, 0, 0, tzinfo=UTC)
    assert ensure_utc(None) is None


def test_format_local_placeholder():
    assert format_local(None) == "never"
    assert format_local(None, placeholder="-") == "-"
    assert format_local(datetime(2024, 1, 1, tzinfo=UTC)).startswith("202")

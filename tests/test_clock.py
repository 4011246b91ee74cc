from datetime import datetime, timedelta, timezone

from netprimer.clock import local_time_message, main


def test_fixed_datetime_message():
    assert local_time_message(datetime(1993, 6, 30, 21, 49, 8)) == (
        "Local time is: Wed Jun 30 21:49:08 1993\n"
    )


def test_single_digit_day_is_space_padded():
    message = local_time_message(datetime(2018, 1, 5, 8, 3, 9))
    assert message == "Local time is: Fri Jan  5 08:03:09 2018\n"


def test_timestamp_matches_local_datetime():
    stamp = 1_000_000_000
    assert local_time_message(stamp) == local_time_message(datetime.fromtimestamp(stamp))


def test_aware_datetime_is_shown_in_local_time():
    moment = datetime(2020, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=5)))
    assert local_time_message(moment) == local_time_message(moment.timestamp())


def test_current_time_shape():
    message = local_time_message()
    assert message.startswith("Local time is: ")
    assert message.endswith("\n")
    assert len(message.split()) == 8


def test_main_prints_message(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Local time is: ")
    assert out.count("\n") == 1
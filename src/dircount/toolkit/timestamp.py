import datetime as dt

import pytz


def utc_now() -> dt.datetime:
    """
    Returns the current time as a timezone-aware datetime object in UTC.
    """

    return dt.datetime.now(tz=pytz.utc)

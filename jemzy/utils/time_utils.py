from datetime import datetime, timedelta, timezone

SQL_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_utc() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def to_sql(dt: datetime) -> str:
    """Format a datetime the way SQLite's datetime('now') does (UTC)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(SQL_FORMAT)


def now_sql() -> str:
    return to_sql(now_utc())


def sql_after(**delta) -> str:
    """SQL timestamp `delta` from now, e.g. sql_after(hours=2)."""
    return to_sql(now_utc() + timedelta(**delta))

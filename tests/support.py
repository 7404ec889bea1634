from datetime import datetime

# Fixed clock: every booking in the tests happens days after NOW.
NOW = datetime(2030, 1, 1, 12, 0)
DAY = datetime(2030, 1, 7)  # a Monday


def at(hour: int, minute: int = 0, day: datetime = DAY) -> datetime:
    return day.replace(hour=hour, minute=minute)

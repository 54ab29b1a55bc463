"""근태 시간 계산 유틸리티 모듈.

Time computation helpers for attendance.
Durations are whole minutes (floor), calendar windows are computed in the
configured attendance timezone and returned as UTC instants.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from hrapp.config import settings

_ONE_MINUTE: timedelta = timedelta(minutes=1)


def attendance_zone() -> ZoneInfo:
    """근태 기준 타임존 — Configured IANA timezone for calendar boundaries."""
    return ZoneInfo(settings.ATTENDANCE_TIMEZONE)


def whole_minutes(start: datetime, end: datetime) -> int:
    """두 시각 사이의 분 수(내림) — Whole minutes between two instants, floored.

    A session shorter than one minute yields 0.
    """
    return (end - start) // _ONE_MINUTE


def local_date(moment: datetime, tz: ZoneInfo | None = None) -> date:
    """UTC 시각의 현지 날짜 — Calendar date of an instant in the attendance zone."""
    return moment.astimezone(tz or attendance_zone()).date()


def day_window(day: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """하루 구간 [시작, 다음날 시작) — Half-open UTC window of a local calendar day."""
    zone = tz or attendance_zone()
    start = datetime(day.year, day.month, day.day, tzinfo=zone)
    end = start + timedelta(days=1)
    # 일광절약시간 전환일 보정 — re-anchor next midnight on the wall clock
    end = datetime(end.year, end.month, end.day, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def month_window(year: int, month: int, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """한 달 구간 [1일 0시, 다음달 1일 0시) — Half-open UTC window of a local calendar month.

    Args:
        year: 연도 (Year)
        month: 월, 1~12 (Month, 1-based)
        tz: 기준 타임존, 생략 시 설정값 (Zone, defaults to ATTENDANCE_TIMEZONE)

    Returns:
        tuple[datetime, datetime]: UTC 시작(포함), UTC 끝(제외)
    """
    zone = tz or attendance_zone()
    start = datetime(year, month, 1, tzinfo=zone)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=zone)
    else:
        end = datetime(year, month + 1, 1, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def to_utc(moment: datetime) -> datetime:
    """UTC 정규화 — Aware UTC instant; naive values are taken as UTC.

    Raises:
        OverflowError: 변환 결과가 datetime 범위를 벗어남 (Result outside datetime range)
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)

"""
UTC 시간 유틸리티

DB 에는 tz 정보 없는 UTC(naive) datetime 으로 저장한다.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """현재 UTC 시간 (naive)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """tz-aware 값은 UTC 로 변환 후 tzinfo 제거, naive 값은 UTC 로 간주"""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """previous 보다 반드시 큰 현재 시각 (같은 마이크로초 안의 연속 수정 대비)"""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def parse_bound(value: Optional[str], upper: bool = False) -> Optional[datetime]:
    """
    쿼리스트링 날짜 경계 파싱.
    'YYYY-MM-DD' 형태의 상한값은 그 날짜의 마지막 순간까지 포함한다.
    """
    if value is None or value == "":
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    if len(raw) == 10:
        day = date.fromisoformat(raw)
        if upper:
            return datetime.combine(day, time.max)
        return datetime.combine(day, time.min)
    return to_naive_utc(datetime.fromisoformat(raw))


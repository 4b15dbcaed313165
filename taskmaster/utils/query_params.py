from typing import List, Optional

from taskmaster.core.exceptions import ValidationError


def split_csv(values: Optional[List[str]]) -> List[str]:
    """반복 파라미터와 콤마 구분 값 모두 지원: ?status=To Do,In Progress&status=Done"""
    result: List[str] = []
    for raw in values or []:
        for part in raw.split(","):
            part = part.strip()
            if part and part not in result:
                result.append(part)
    return result


def split_csv_ints(values: Optional[List[str]], field: str) -> List[int]:
    try:
        return [int(v) for v in split_csv(values)]
    except ValueError:
        raise ValidationError(f"{field}: must be a comma-separated list of integers")

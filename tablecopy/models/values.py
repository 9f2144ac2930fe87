"""
源表行值的分类与绑定前转换

驱动返回的值类型是动态的，这里先把每个值归入固定的几类(ValueKind)，
再按类别和目标列类型转换成可以直接绑定到INSERT语句的形式。
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, List, Sequence, Tuple


class ValueKind(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    BINARY = "binary"


def value_kind(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    # bool 是 int 的子类，必须先判断
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, (float, Decimal)):
        return ValueKind.FLOAT
    if isinstance(value, (datetime, date, time, timedelta)):
        return ValueKind.TIMESTAMP
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BINARY
    return ValueKind.TEXT


def _format_timedelta(value: timedelta) -> str:
    # MySQL 的 TIME 列经 pymysql 返回 timedelta
    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    hours, remainder = divmod(abs(total), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def _to_timestamp_text(value: Any) -> str:
    if isinstance(value, timedelta):
        return _format_timedelta(value)
    return value.isoformat()


def _to_hex_text(value: Any) -> str:
    # PostgreSQL bytea 的十六进制文本形式，可无损还原原始字节，且不含 NUL
    return "\\x" + bytes(value).hex()


def bind_value(value: Any, target_type: str) -> Any:
    """
    把单个值转换为可绑定的形式

    Args:
        value: 源表读取的原始值
        target_type: 该列在目标表中的类型

    Returns:
        转换后的值
    """
    kind = value_kind(value)
    if kind is ValueKind.TIMESTAMP:
        return _to_timestamp_text(value)
    if kind is ValueKind.BINARY:
        return _to_hex_text(value)
    if kind is ValueKind.INTEGER and target_type == "BOOLEAN":
        return bool(value)
    return value


def row_converter(target_types: Sequence[str]) -> Callable[[Sequence[Any]], Tuple[Any, ...]]:
    """按列顺序生成整行转换函数"""
    types: List[str] = list(target_types)

    def convert(row: Sequence[Any]) -> Tuple[Any, ...]:
        return tuple(bind_value(value, types[idx]) for idx, value in enumerate(row))

    return convert

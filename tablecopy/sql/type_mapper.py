"""
MySQL 列类型/默认值 到 PostgreSQL 的映射

规则按顺序匹配，更具体的模式必须排在前面，例如 tinyint(1) 必须先于通用整数规则。
无法识别的类型一律映射为 TEXT，不报错。
"""
import re
from typing import Callable, List, Optional, Tuple

from loguru import logger

from tablecopy.models.schema import ColumnDescriptor, TargetColumnSpec

FALLBACK_TYPE = "TEXT"
DEFAULT_VARCHAR_LENGTH = 255
ENUM_VARCHAR_LENGTH = 50

_VARCHAR_ARGS = re.compile(r"varchar\s*\(\s*(\d+)\s*\)")
_DECIMAL_ARGS = re.compile(r"(?:decimal|numeric)\s*\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)")
_NUMERIC_LITERAL = re.compile(r"^-?\d+(\.\d+)?$")
_CURRENT_TIME_FUNCTIONS = ("current_timestamp", "now()", "localtimestamp", "localtime")


def _varchar(source_type: str) -> str:
    match = _VARCHAR_ARGS.search(source_type)
    if match and int(match.group(1)) > 0:
        return f"VARCHAR({match.group(1)})"
    return f"VARCHAR({DEFAULT_VARCHAR_LENGTH})"


def _decimal(source_type: str) -> str:
    match = _DECIMAL_ARGS.search(source_type)
    if not match:
        return "DECIMAL"
    precision, scale = match.group(1), match.group(2)
    if scale is None:
        return f"DECIMAL({precision})"
    return f"DECIMAL({precision},{scale})"


def _fixed(target_type: str) -> Callable[[str], str]:
    return lambda _source_type: target_type


# (模式, 生成目标类型的函数)，按优先级排列
TYPE_RULES: List[Tuple[re.Pattern, Callable[[str], str]]] = [
    # enum/set 的取值本身可能包含类型关键字，必须最先匹配
    (re.compile(r"^enum\b"), _fixed(f"VARCHAR({ENUM_VARCHAR_LENGTH})")),
    (re.compile(r"^set\b"), _fixed(FALLBACK_TYPE)),
    (re.compile(r"\btinyint\s*\(\s*1\s*\)"), _fixed("BOOLEAN")),
    (re.compile(r"\bbigint\b"), _fixed("BIGINT")),
    (re.compile(r"\bsmallint\b"), _fixed("SMALLINT")),
    (re.compile(r"\b(?:tinyint|mediumint|int|integer)\b"), _fixed("INTEGER")),
    (re.compile(r"\bvarchar\b"), _varchar),
    (re.compile(r"\b(?:tiny|medium|long)?text\b"), _fixed("TEXT")),
    (re.compile(r"\b(?:decimal|numeric)\b"), _decimal),
    (re.compile(r"\bfloat\b"), _fixed("REAL")),
    (re.compile(r"\bdouble\b"), _fixed("DOUBLE PRECISION")),
    (re.compile(r"\b(?:datetime|timestamp)\b"), _fixed("TIMESTAMP")),
    (re.compile(r"\bdate\b"), _fixed("DATE")),
    (re.compile(r"\btime\b"), _fixed("TIME")),
    (re.compile(r"\bjson\b"), _fixed("JSON")),
]


def map_type(source_type: str) -> str:
    """
    把MySQL列类型转换为PostgreSQL列类型

    Args:
        source_type: MySQL列类型，如 "varchar(120)"、"int(11) unsigned"

    Returns:
        PostgreSQL列类型，未知类型返回 TEXT
    """
    normalized = (source_type or "").strip().lower()
    for pattern, build in TYPE_RULES:
        if pattern.search(normalized):
            return build(normalized)
    logger.debug(f"No mapping for column type '{source_type}', falling back to {FALLBACK_TYPE}")
    return FALLBACK_TYPE


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def map_default(raw: Optional[str], source_type: str) -> Optional[str]:
    """
    把MySQL默认值转换为PostgreSQL默认值表达式

    Args:
        raw: DESCRIBE / information_schema 返回的默认值，可能为None
        source_type: 该列的MySQL类型

    Returns:
        可直接拼接在 DEFAULT 之后的表达式，没有默认值时返回None
    """
    if raw is None:
        return None
    text = str(raw)
    lowered = text.strip().lower()
    if lowered == "null":
        return None

    if any(func in lowered for func in _CURRENT_TIME_FUNCTIONS):
        return "CURRENT_TIMESTAMP"

    if _NUMERIC_LITERAL.match(lowered):
        if map_type(source_type) == "BOOLEAN" and lowered in ("0", "1"):
            return "TRUE" if lowered == "1" else "FALSE"
        return lowered

    return _quote_literal(text)


def map_column(column: ColumnDescriptor) -> TargetColumnSpec:
    return TargetColumnSpec(
        name=column.name,
        target_type=map_type(column.source_type),
        nullable=column.nullable,
        is_primary_key=column.is_primary_key,
        default_expr=map_default(column.default_raw, column.source_type),
    )


def map_columns(columns: List[ColumnDescriptor]) -> List[TargetColumnSpec]:
    return [map_column(col) for col in columns]

"""
SQL语句构造

表名和列名来自元数据查询，而不是用户输入，但仍统一经过标识符引用；
所有数据值只通过绑定参数传递，不拼接进SQL文本。
"""
from typing import Any, Callable, Dict, List, Sequence, Tuple

from tablecopy.models.schema import TargetColumnSpec

Quoter = Callable[[str], str]


def quote_identifier(name: str) -> str:
    """ANSI双引号引用，内部的双引号加倍"""
    return '"' + name.replace('"', '""') + '"'


def column_list(column_names: Sequence[str], quote: Quoter = quote_identifier) -> str:
    return ", ".join(quote(name) for name in column_names)


def build_drop_table(table_name: str, quote: Quoter = quote_identifier) -> str:
    return f"DROP TABLE IF EXISTS {quote(table_name)}"


def build_column_definition(spec: TargetColumnSpec, quote: Quoter = quote_identifier) -> str:
    definition = f"{quote(spec.name)} {spec.target_type}"
    # 主键约束已隐含 NOT NULL
    if not spec.nullable and not spec.is_primary_key:
        definition += " NOT NULL"
    if spec.default_expr is not None:
        definition += f" DEFAULT {spec.default_expr}"
    return definition


def build_create_table(table_name: str, specs: Sequence[TargetColumnSpec],
                       quote: Quoter = quote_identifier) -> str:
    """
    生成 CREATE TABLE 语句

    Args:
        table_name: 目标表名
        specs: 目标列定义，按源表列顺序

    Returns:
        CREATE TABLE 语句
    """
    if not specs:
        raise ValueError(f"Cannot create table {table_name} without columns")

    lines = [f"    {build_column_definition(spec, quote)}" for spec in specs]
    primary_key = [spec.name for spec in specs if spec.is_primary_key]
    if primary_key:
        lines.append(f"    PRIMARY KEY ({column_list(primary_key, quote)})")

    return f"CREATE TABLE {quote(table_name)} (\n" + ",\n".join(lines) + "\n)"


def build_count(table_name: str, quote: Quoter = quote_identifier) -> str:
    return f"SELECT COUNT(*) AS count FROM {quote(table_name)}"


def build_select_page(table_name: str, column_names: Sequence[str],
                      quote: Quoter = quote_identifier) -> str:
    """分页查询，LIMIT/OFFSET 通过 :limit 和 :offset 绑定"""
    return (
        f"SELECT {column_list(column_names, quote)} FROM {quote(table_name)} "
        f"LIMIT :limit OFFSET :offset"
    )


def build_insert(table_name: str, column_names: Sequence[str], rows: Sequence[Sequence[Any]],
                 quote: Quoter = quote_identifier) -> Tuple[str, Dict[str, Any]]:
    """
    生成多行 INSERT 语句和绑定参数

    占位符按 行优先、列顺序 编号为 :p0, :p1, ...，每行的值数量必须与列数一致。

    Args:
        table_name: 目标表名
        column_names: 列名，顺序决定每行值的绑定位置
        rows: 行数据，每行是按 column_names 顺序排列的元组

    Returns:
        (SQL文本, 参数字典)
    """
    if not rows:
        raise ValueError("Cannot build an INSERT statement without rows")

    width = len(column_names)
    params: Dict[str, Any] = {}
    placeholders: List[str] = []
    index = 0
    for row_num, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Row {row_num} has {len(row)} values, expected {width}")
        row_placeholders = []
        for value in row:
            key = f"p{index}"
            params[key] = value
            row_placeholders.append(f":{key}")
            index += 1
        placeholders.append(f"({', '.join(row_placeholders)})")

    sql = (
        f"INSERT INTO {quote(table_name)} ({column_list(column_names, quote)}) "
        f"VALUES {', '.join(placeholders)}"
    )
    return sql, params

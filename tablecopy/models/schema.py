from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ColumnDescriptor:
    """源表中的一列，顺序与源表列顺序一致"""
    name: str
    source_type: str
    nullable: bool
    is_primary_key: bool = False
    default_raw: Optional[str] = None


@dataclass(frozen=True)
class TargetColumnSpec:
    """目标表中的一列，由类型映射从 ColumnDescriptor 推导"""
    name: str
    target_type: str
    nullable: bool
    is_primary_key: bool = False
    default_expr: Optional[str] = None


@dataclass
class TableInfo:
    name: str
    columns: List[ColumnDescriptor] = field(default_factory=list)
    total_rows: int = 0
    size_mb: float = 0.0

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def primary_key(self) -> List[str]:
        return [col.name for col in self.columns if col.is_primary_key]

from typing import Optional

from tablecopy.models.progress import TransferProgress


class TableCopyError(Exception):
    """表复制过程中所有错误的基类"""


class DatabaseConnectionError(TableCopyError):
    """数据库连接失败，不在本层重试"""


class MetadataError(TableCopyError):
    """读取源表元数据失败，复制无法开始"""


class SchemaCreationError(TableCopyError):
    """目标表DDL执行失败"""


class PageFetchError(TableCopyError):
    """从源表分页读取失败，progress 记录失败前已提交的批次"""

    def __init__(self, table_name: str, offset: int, cause: Exception,
                 progress: Optional[TransferProgress] = None):
        super().__init__(f"Failed to fetch rows from {table_name} at offset {offset}: {cause}")
        self.table_name = table_name
        self.offset = offset
        self.progress = progress


class BatchInsertError(TableCopyError):
    """单个批次写入失败，可重试"""

    def __init__(self, batch_num: int, attempt: int, cause: Exception):
        super().__init__(f"Batch {batch_num} failed on attempt {attempt}: {cause}")
        self.batch_num = batch_num
        self.attempt = attempt


class VerificationMismatch(TableCopyError):
    """源表和目标表行数不一致，只报告不修复"""

    def __init__(self, table_name: str, source_count: int, target_count: int):
        super().__init__(
            f"Row count mismatch for {table_name}: source={source_count}, "
            f"target={target_count}, difference={abs(source_count - target_count)}"
        )
        self.table_name = table_name
        self.source_count = source_count
        self.target_count = target_count

    @property
    def difference(self) -> int:
        return abs(self.source_count - self.target_count)

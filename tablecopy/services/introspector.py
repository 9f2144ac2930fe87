import asyncio
from typing import List

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from tablecopy.connectors.base import SourceConnector
from tablecopy.errors import MetadataError
from tablecopy.models.schema import ColumnDescriptor, TableInfo


class SchemaIntrospector:
    """读取源表元数据，只执行独立的只读查询"""

    def __init__(self, source: SourceConnector):
        self.source = source

    async def describe(self, table_name: str) -> List[ColumnDescriptor]:
        """
        获取源表列定义

        Raises:
            MetadataError: 查询失败或表不存在
        """
        try:
            columns = await self.source.describe_table(table_name)
        except SQLAlchemyError as e:
            raise MetadataError(f"Failed to describe table {table_name}: {e}") from e
        if not columns:
            raise MetadataError(f"Table {table_name} does not exist or has no columns")
        return columns

    async def count_rows(self, table_name: str) -> int:
        try:
            return await self.source.count_rows(table_name)
        except SQLAlchemyError as e:
            raise MetadataError(f"Failed to count rows of table {table_name}: {e}") from e

    async def estimate_size_mb(self, table_name: str) -> float:
        """估算表大小，仅供参考，失败时返回0"""
        try:
            return await self.source.table_size_mb(table_name)
        except Exception as e:
            logger.warning(f"无法估算表 {table_name} 的大小: {str(e)}")
            return 0.0

    async def analyze(self, table_name: str) -> TableInfo:
        """并发执行三项分析查询"""
        columns, total_rows, size_mb = await asyncio.gather(
            self.describe(table_name),
            self.count_rows(table_name),
            self.estimate_size_mb(table_name),
        )
        info = TableInfo(name=table_name, columns=columns, total_rows=total_rows, size_mb=size_mb)
        logger.info(
            f"表 {table_name}: {len(columns)} 列, {total_rows} 行, 估算大小 {size_mb:.2f}MB"
        )
        return info

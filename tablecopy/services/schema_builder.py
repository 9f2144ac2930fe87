from typing import Sequence

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from tablecopy.connectors.base import TargetConnector
from tablecopy.errors import SchemaCreationError
from tablecopy.models.schema import TargetColumnSpec
from tablecopy.sql import statements


class SchemaBuilder:
    def __init__(self, target: TargetConnector):
        self.target = target

    async def create_table(self, table_name: str, specs: Sequence[TargetColumnSpec]) -> str:
        """
        删除并重建目标表

        注意: 目标库中同名表及其数据会被无条件删除，调用方负责事先确认。

        Args:
            table_name: 目标表名
            specs: 目标列定义，顺序即建表列顺序

        Returns:
            执行的 CREATE TABLE 语句

        Raises:
            SchemaCreationError: DDL执行失败
        """
        try:
            create_sql = statements.build_create_table(table_name, specs, self.target.quote)
        except ValueError as e:
            raise SchemaCreationError(str(e)) from e

        try:
            await self.target.execute(statements.build_drop_table(table_name, self.target.quote))
            logger.debug(f"CREATE TABLE statement:\n{create_sql}")
            await self.target.execute(create_sql)
        except SQLAlchemyError as e:
            raise SchemaCreationError(f"Failed to create table {table_name}: {e}") from e

        logger.success(f"目标表 {table_name} 创建成功")
        return create_sql

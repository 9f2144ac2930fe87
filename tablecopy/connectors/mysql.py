from typing import Any, List, Mapping

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from tablecopy.connectors.base import SourceConnector
from tablecopy.models.schema import ColumnDescriptor

COLUMNS_QUERY = """
SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table
ORDER BY ORDINAL_POSITION
"""

SIZE_QUERY = """
SELECT ROUND(((DATA_LENGTH + INDEX_LENGTH) / 1024 / 1024), 2) AS size_mb
FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table
"""


class MySQLConnector(SourceConnector):
    dialect_name = "mysql"

    def _build_url(self) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=self.config.username,
            password=self.config.password,
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
            query={"charset": "utf8mb4"},
        )

    @staticmethod
    def _to_descriptor(row: Mapping[str, Any]) -> ColumnDescriptor:
        column_type = row["COLUMN_TYPE"]
        # 部分MySQL版本返回 bytes
        if isinstance(column_type, bytes):
            column_type = column_type.decode("utf-8")
        default = row["COLUMN_DEFAULT"]
        return ColumnDescriptor(
            name=row["COLUMN_NAME"],
            source_type=column_type,
            nullable=row["IS_NULLABLE"] == "YES",
            is_primary_key=row["COLUMN_KEY"] == "PRI",
            default_raw=None if default is None else str(default),
        )

    def _describe_table(self, table_name: str) -> List[ColumnDescriptor]:
        with self.engine.connect() as conn:
            result = conn.execute(text(COLUMNS_QUERY), {"table": table_name})
            return [self._to_descriptor(row._mapping) for row in result]

    async def describe_table(self, table_name: str) -> List[ColumnDescriptor]:
        try:
            columns = await self._run(self._describe_table, table_name)
            for col in columns:
                logger.debug(
                    f"{col.name}: {col.source_type} {'NULL' if col.nullable else 'NOT NULL'}"
                    f"{' (PRI)' if col.is_primary_key else ''}"
                    f"{f' DEFAULT {col.default_raw}' if col.default_raw is not None else ''}"
                )
            return columns
        except SQLAlchemyError as e:
            logger.error(f"Failed to get schema for table {table_name}: {str(e)}")
            raise

    def _table_size_mb(self, table_name: str) -> float:
        with self.engine.connect() as conn:
            size = conn.execute(text(SIZE_QUERY), {"table": table_name}).scalar()
            return float(size) if size is not None else 0.0

    async def table_size_mb(self, table_name: str) -> float:
        try:
            return await self._run(self._table_size_mb, table_name)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get size of table {table_name}: {str(e)}")
            raise

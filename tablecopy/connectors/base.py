import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from tablecopy.errors import DatabaseConnectionError
from tablecopy.models.config import DatabaseConfig
from tablecopy.models.schema import ColumnDescriptor
from tablecopy.sql import statements


class BaseConnector(ABC):
    """
    基于SQLAlchemy引擎的数据库连接器

    可以传入已创建的引擎(测试或外部连接池)，否则在 connect() 时按配置创建。
    驱动调用是阻塞的，统一放到线程中执行，避免阻塞事件循环。
    """

    dialect_name = "generic"

    def __init__(self, config: Optional[DatabaseConfig] = None, engine: Optional[Engine] = None):
        self.config = config
        self._engine: Optional[Engine] = engine

    @abstractmethod
    def _build_url(self) -> URL:
        """根据配置生成连接URL"""
        pass

    def _engine_options(self) -> Dict[str, Any]:
        return {}

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DatabaseConnectionError(f"{self.dialect_name} connector is not connected")
        return self._engine

    @property
    def name(self) -> str:
        if self.config is not None:
            return f"{self.dialect_name}:{self.config.database}"
        return self.dialect_name

    async def _run(self, func: Callable, *args) -> Any:
        return await asyncio.to_thread(func, *args)

    def quote(self, identifier: str) -> str:
        """按当前方言引用标识符"""
        return self.engine.dialect.identifier_preparer.quote_identifier(identifier)

    async def connect(self) -> None:
        """建立数据库连接"""
        try:
            if self._engine is None:
                self._engine = create_engine(self._build_url(), pool_pre_ping=True, **self._engine_options())
            # 测试连接
            await self._run(self._ping)
            logger.info(f"Successfully connected to {self.name}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to {self.name}: {str(e)}")
            raise DatabaseConnectionError(f"Failed to connect to {self.name}: {e}") from e

    async def disconnect(self) -> None:
        """关闭数据库连接"""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info(f"Disconnected from {self.name}")

    def _ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    async def ping(self) -> bool:
        try:
            await self._run(self._ping)
            return True
        except (SQLAlchemyError, DatabaseConnectionError) as e:
            logger.error(f"{self.name} is not reachable: {str(e)}")
            return False

    def _count_rows(self, table_name: str) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(text(statements.build_count(table_name, self.quote))).scalar())

    async def count_rows(self, table_name: str) -> int:
        """
        获取表的总行数

        Args:
            table_name: 表名

        Returns:
            表中的记录数
        """
        try:
            count = await self._run(self._count_rows, table_name)
            logger.debug(f"Table {table_name} on {self.name} has {count} rows")
            return count
        except SQLAlchemyError as e:
            logger.error(f"Failed to get row count for table {table_name}: {str(e)}")
            raise


class SourceConnector(BaseConnector):
    """源库只读访问"""

    @abstractmethod
    async def describe_table(self, table_name: str) -> List[ColumnDescriptor]:
        """按列顺序返回表结构"""
        pass

    @abstractmethod
    async def table_size_mb(self, table_name: str) -> float:
        """数据和索引的估算大小(MB)"""
        pass

    def _fetch_page(self, table_name: str, column_names: Sequence[str],
                    offset: int, limit: int) -> List[Tuple[Any, ...]]:
        query = statements.build_select_page(table_name, column_names, self.quote)
        with self.engine.connect() as conn:
            result = conn.execute(text(query), {"limit": limit, "offset": offset})
            return [tuple(row) for row in result]

    async def fetch_page(self, table_name: str, column_names: Sequence[str],
                         offset: int, limit: int) -> List[Tuple[Any, ...]]:
        """
        读取一页数据

        Args:
            table_name: 表名
            column_names: 查询的列，返回的每行按此顺序排列
            offset: 起始偏移
            limit: 最多返回的行数

        Returns:
            行元组列表
        """
        try:
            return await self._run(self._fetch_page, table_name, column_names, offset, limit)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read data from table {table_name} at offset {offset}: {str(e)}")
            raise


class TargetConnector(BaseConnector):
    """目标库读写访问"""

    def _execute(self, sql: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text(sql))

    async def execute(self, sql: str) -> None:
        """
        执行SQL语句

        Args:
            sql: 要执行的SQL语句
        """
        try:
            await self._run(self._execute, sql)
            logger.debug(f"Successfully executed SQL: {sql}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to execute SQL: {sql}, error: {str(e)}")
            raise

    def _insert_rows(self, table_name: str, column_names: Sequence[str],
                     rows: Sequence[Sequence[Any]]) -> int:
        query, params = statements.build_insert(table_name, column_names, rows, self.quote)
        # 每个批次单独提交
        with self.engine.begin() as conn:
            conn.execute(text(query), params)
        return len(rows)

    async def insert_rows(self, table_name: str, column_names: Sequence[str],
                          rows: Sequence[Sequence[Any]]) -> int:
        """写入一个批次，返回写入的记录数"""
        if not rows:
            return 0
        return await self._run(self._insert_rows, table_name, column_names, rows)

    def _sample_rows(self, table_name: str, limit: int) -> List[Dict[str, Any]]:
        query = f"SELECT * FROM {self.quote(table_name)} LIMIT :limit"
        with self.engine.connect() as conn:
            result = conn.execute(text(query), {"limit": limit})
            return [dict(row._mapping) for row in result]

    async def sample_rows(self, table_name: str, limit: int) -> List[Dict[str, Any]]:
        try:
            return await self._run(self._sample_rows, table_name, limit)
        except SQLAlchemyError as e:
            logger.error(f"Failed to sample rows from table {table_name}: {str(e)}")
            raise

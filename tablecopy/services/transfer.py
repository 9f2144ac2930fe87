"""
流式批量传输

按 page_size 分页读取源表，每页再切分成 batch_size 的批次写入目标表。
内存中同时只保留一页数据；批次失败会重试，重试耗尽后放弃该批次并继续。
"""
import asyncio
import gc
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

import psutil
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from tablecopy.connectors.base import SourceConnector, TargetConnector
from tablecopy.errors import BatchInsertError, PageFetchError
from tablecopy.models.config import TransferConfig
from tablecopy.models.progress import TransferProgress
from tablecopy.models.schema import ColumnDescriptor
from tablecopy.models.values import row_converter
from tablecopy.sql.type_mapper import map_type


def sample_memory_mb() -> float:
    """当前进程常驻内存(MB)"""
    return psutil.Process().memory_info().rss / 1024 / 1024


class BatchTransferEngine:
    def __init__(self, source: SourceConnector, target: TargetConnector):
        self.source = source
        self.target = target

    async def transfer(self, table_name: str, total_rows: int, columns: Sequence[ColumnDescriptor],
                       config: TransferConfig, cancel_event: Optional[asyncio.Event] = None) -> int:
        """
        复制表数据，返回成功写入的行数

        返回值可能小于 total_rows(有批次被放弃或被取消)，这不是异常，调用方需要自行比较。
        """
        progress = await self.run(table_name, total_rows, columns, config, cancel_event)
        return progress.rows_copied

    async def run(self, table_name: str, total_rows: int, columns: Sequence[ColumnDescriptor],
                  config: TransferConfig, cancel_event: Optional[asyncio.Event] = None) -> TransferProgress:
        """
        复制表数据，返回完整的传输计数

        Args:
            table_name: 源表和目标表的表名
            total_rows: 源表行数，分页到此为止
            columns: 源表列定义，决定查询列、绑定顺序和值转换
            config: 传输参数
            cancel_event: 外部取消信号，在每个批次开始前检查

        Raises:
            PageFetchError: 读取源表失败，异常上带有失败前的传输计数
        """
        column_names = [col.name for col in columns]
        convert = row_converter([map_type(col.source_type) for col in columns])
        progress = TransferProgress(total_rows=total_rows)
        next_checkpoint = config.checkpoint_interval
        offset = 0

        logger.info(
            f"开始复制 {table_name}: 共 {total_rows} 行, "
            f"批次大小 {config.batch_size}, 分页大小 {config.page_size}"
        )

        while offset < total_rows and not progress.cancelled:
            limit = min(config.page_size, total_rows - offset)
            logger.debug(f"Fetching records {offset + 1} to {offset + limit}")
            try:
                rows = await self.source.fetch_page(table_name, column_names, offset, limit)
            except SQLAlchemyError as e:
                self._log_summary(table_name, progress)
                raise PageFetchError(table_name, offset, e, progress) from e

            if not rows:
                # 行数统计可能已过期，按数据结束处理
                logger.warning(f"源表在偏移 {offset} 处没有更多数据，提前结束")
                break
            progress.pages_fetched += 1

            for start in range(0, len(rows), config.batch_size):
                if cancel_event is not None and cancel_event.is_set():
                    progress.cancelled = True
                    logger.warning(f"传输被取消，已复制 {progress.rows_copied} 行")
                    break

                batch = [convert(row) for row in rows[start:start + config.batch_size]]
                progress.batches_attempted += 1
                batch_num = progress.batches_attempted

                if await self._insert_batch(table_name, column_names, batch, batch_num, config):
                    progress.rows_copied += len(batch)
                    next_checkpoint = self._checkpoint(progress, next_checkpoint, config)
                    self._emit_progress(progress, config)
                else:
                    progress.batches_failed += 1

                if batch_num % config.memory_check_interval == 0:
                    self._check_memory(config)

            offset += len(rows)

        self._log_summary(table_name, progress)
        return progress

    async def _insert_batch(self, table_name: str, column_names: List[str],
                            batch: List[Tuple[Any, ...]], batch_num: int,
                            config: TransferConfig) -> bool:
        """写入单个批次，失败后按 attempt * retry_base_delay 等待重试"""
        for attempt in range(1, config.max_retries + 1):
            try:
                await self.target.insert_rows(table_name, column_names, batch)
                return True
            except Exception as e:
                error = BatchInsertError(batch_num, attempt, e)
                logger.error(f"{error} ({attempt}/{config.max_retries})")
                if attempt >= config.max_retries:
                    break
                delay = attempt * config.retry_base_delay
                logger.warning(f"批次 {batch_num} 将在 {delay:.1f} 秒后进行第 {attempt + 1} 次重试")
                await asyncio.sleep(delay)

        logger.error(f"批次 {batch_num} 永久失败，跳过 {len(batch)} 行")
        return False

    @staticmethod
    def _checkpoint(progress: TransferProgress, next_checkpoint: int, config: TransferConfig) -> int:
        if progress.rows_copied < next_checkpoint:
            return next_checkpoint
        logger.info(f"检查点: 已复制 {progress.rows_copied} 行")
        while next_checkpoint <= progress.rows_copied:
            next_checkpoint += config.checkpoint_interval
        return next_checkpoint

    @staticmethod
    def _emit_progress(progress: TransferProgress, config: TransferConfig,
                       clock: Callable[[], float] = time.monotonic) -> bool:
        now = clock()
        if (now - progress.last_progress_emit_time) * 1000 < config.progress_interval_ms:
            return False
        progress.last_progress_emit_time = now
        logger.info(
            f"进度: {progress.percent():.1f}% ({progress.rows_copied}/{progress.total_rows}), "
            f"耗时: {progress.elapsed(now):.2f}秒, "
            f"速率: {progress.throughput(now):.2f} 行/秒, "
            f"预计剩余: {progress.eta_seconds(now):.0f}秒"
        )
        return True

    @staticmethod
    def _check_memory(config: TransferConfig) -> None:
        """内存采样只做提示，任何失败都不影响传输"""
        try:
            used_mb = sample_memory_mb()
        except psutil.Error as e:
            logger.debug(f"Memory sampling failed: {str(e)}")
            return

        if used_mb > config.memory_reclaim_mb:
            logger.warning(f"内存占用 {used_mb:.0f}MB 超过 {config.memory_reclaim_mb}MB，执行垃圾回收")
            collected = gc.collect()
            logger.info(f"垃圾回收完成，回收对象 {collected} 个")
        elif used_mb > config.memory_warn_mb:
            logger.warning(f"内存占用 {used_mb:.0f}MB 超过告警水位 {config.memory_warn_mb}MB")

    @staticmethod
    def _log_summary(table_name: str, progress: TransferProgress) -> None:
        elapsed = progress.elapsed()
        logger.info(
            f"表 {table_name} 数据复制结束: {progress.rows_copied}/{progress.total_rows} 行, "
            f"耗时: {elapsed:.2f}秒, 平均速率: {progress.throughput():.2f} 行/秒, "
            f"完成批次数: {progress.batches_succeeded}/{progress.batches_attempted}"
        )
        if progress.rows_copied < progress.total_rows:
            logger.warning(f"{progress.total_rows - progress.rows_copied} 行未被复制")

import asyncio
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from tablecopy.connectors.base import SourceConnector, TargetConnector
from tablecopy.errors import PageFetchError, TableCopyError
from tablecopy.models.config import TransferConfig
from tablecopy.models.progress import TransferProgress
from tablecopy.models.report import CopyOutcome, CopyReport
from tablecopy.services.introspector import SchemaIntrospector
from tablecopy.services.schema_builder import SchemaBuilder
from tablecopy.services.transfer import BatchTransferEngine
from tablecopy.services.verifier import Verifier
from tablecopy.sql.type_mapper import map_columns

PHASE_ANALYSIS = "analysis"
PHASE_TABLE_SETUP = "table_setup"
PHASE_DATA_COPY = "data_copy"
PHASE_VERIFICATION = "verification"

LARGE_TABLE_ROWS = 1_000_000
LARGE_TABLE_MB = 1000


class TableCopier:
    """
    单表复制流程: 分析 -> 建表 -> 复制数据 -> 校验

    不对目标表加锁。同一张表的多个复制任务不能同时运行，需要由调用方在外部加锁保证。
    建表阶段会删除目标库中的同名表。
    """

    def __init__(self, source: SourceConnector, target: TargetConnector,
                 config: TransferConfig, sample_rows: int = 0):
        self.config = config
        self.sample_rows = sample_rows
        self.introspector = SchemaIntrospector(source)
        self.schema_builder = SchemaBuilder(target)
        self.engine = BatchTransferEngine(source, target)
        self.verifier = Verifier(source, target)

    @contextmanager
    def _phase(self, report: CopyReport, name: str) -> Iterator[None]:
        started = time.monotonic()
        try:
            yield
        finally:
            report.phase_durations[name] = time.monotonic() - started
            logger.info(f"阶段 {name} 耗时: {report.phase_durations[name]:.2f}秒")

    async def copy_table(self, table_name: str,
                         cancel_event: Optional[asyncio.Event] = None) -> CopyReport:
        """
        复制单张表，总是返回报告，不会因为致命错误而退出进程

        Args:
            table_name: 表名，源库和目标库相同
            cancel_event: 外部取消信号

        Returns:
            CopyReport，outcome 区分成功、部分成功和失败
        """
        report = CopyReport(table_name=table_name)
        started = time.monotonic()
        phase = PHASE_ANALYSIS
        logger.info(f"开始复制表 {table_name}")

        try:
            with self._phase(report, PHASE_ANALYSIS):
                info = await self.introspector.analyze(table_name)
            report.total_rows = info.total_rows
            if info.total_rows > LARGE_TABLE_ROWS or info.size_mb > LARGE_TABLE_MB:
                logger.warning(
                    f"检测到大表 {table_name}: {info.total_rows} 行, {info.size_mb:.2f}MB, "
                    f"批次大小 {self.config.batch_size}, 分页大小 {self.config.page_size}, "
                    f"最大重试 {self.config.max_retries}"
                )

            phase = PHASE_TABLE_SETUP
            with self._phase(report, PHASE_TABLE_SETUP):
                await self.schema_builder.create_table(table_name, map_columns(info.columns))

            phase = PHASE_DATA_COPY
            with self._phase(report, PHASE_DATA_COPY):
                try:
                    progress = await self.engine.run(
                        table_name, info.total_rows, info.columns, self.config, cancel_event
                    )
                except PageFetchError as e:
                    # 失败前已提交的批次仍在目标表中
                    if e.progress is not None:
                        self._apply_progress(report, e.progress)
                    raise
            self._apply_progress(report, progress)

            phase = PHASE_VERIFICATION
            with self._phase(report, PHASE_VERIFICATION):
                report.verification = await self.verifier.verify_counts(table_name)
                if self.sample_rows:
                    report.verification.sample_rows = await self.verifier.sample_rows(
                        table_name, self.sample_rows
                    )
        except (TableCopyError, SQLAlchemyError) as e:
            report.failed_phase = phase
            report.error = str(e)
            logger.error(f"复制表 {table_name} 在阶段 {phase} 失败: {str(e)}")

        report.total_duration = time.monotonic() - started
        report.outcome = report.classify()
        self._log_report(report)
        return report

    @staticmethod
    def _apply_progress(report: CopyReport, progress: TransferProgress) -> None:
        report.rows_copied = progress.rows_copied
        report.batches_attempted = progress.batches_attempted
        report.batches_failed = progress.batches_failed
        report.cancelled = progress.cancelled

    @staticmethod
    def _log_report(report: CopyReport) -> None:
        if report.outcome is CopyOutcome.SUCCESS:
            logger.success(
                f"表 {report.table_name} 复制完成: {report.rows_copied}/{report.total_rows} 行, "
                f"总耗时: {report.total_duration:.2f}秒, 平均速率: {report.average_speed:.2f} 行/秒"
            )
        elif report.outcome is CopyOutcome.PARTIAL_SUCCESS:
            logger.warning(
                f"表 {report.table_name} 部分复制: {report.rows_copied}/{report.total_rows} 行, "
                f"失败批次: {report.batches_failed}, 总耗时: {report.total_duration:.2f}秒"
            )
            if report.failed_phase is not None:
                logger.warning(f"复制在阶段 {report.failed_phase} 中断: {report.error}")
        else:
            logger.error(
                f"表 {report.table_name} 复制失败 (阶段 {report.failed_phase}): {report.error}, "
                f"失败前耗时: {report.total_duration:.2f}秒"
            )

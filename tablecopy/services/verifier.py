from typing import Any, Dict, List

from loguru import logger

from tablecopy.connectors.base import SourceConnector, TargetConnector
from tablecopy.models.report import VerificationResult


class Verifier:
    """复制后校验，只读，不修复任何差异"""

    def __init__(self, source: SourceConnector, target: TargetConnector):
        self.source = source
        self.target = target

    async def verify_counts(self, table_name: str) -> VerificationResult:
        source_count = await self.source.count_rows(table_name)
        target_count = await self.target.count_rows(table_name)
        result = VerificationResult(table_name, source_count, target_count)

        logger.info(f"Source table count: {source_count}")
        logger.info(f"Target table count: {target_count}")
        if result.matched:
            logger.success(f"数据验证成功: {source_count} 行")
        else:
            logger.warning(str(result.mismatch))
        return result

    async def sample_rows(self, table_name: str, limit: int) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []
        return await self.target.sample_rows(table_name, limit)

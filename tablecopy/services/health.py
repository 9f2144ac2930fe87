import asyncio
from typing import Dict

from loguru import logger

from tablecopy.connectors.base import SourceConnector, TargetConnector


async def check_connections(source: SourceConnector, target: TargetConnector) -> Dict[str, bool]:
    """检查源库和目标库是否可用"""
    source_ok, target_ok = await asyncio.gather(source.ping(), target.ping())
    status = {
        source.dialect_name: source_ok,
        target.dialect_name: target_ok,
        "overall": source_ok and target_ok,
    }
    logger.info(
        f"Database status: {source.name} {'connected' if source_ok else 'disconnected'}, "
        f"{target.name} {'connected' if target_ok else 'disconnected'}"
    )
    return status

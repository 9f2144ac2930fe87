import asyncio
import json
import sys
from loguru import logger
from tablecopy.config.loader import load_config
from tablecopy.connectors.factory import ConnectorFactory
from tablecopy.models.report import CopyOutcome
from tablecopy.services.copier import TableCopier
from tablecopy.services.health import check_connections

EXIT_CODES = {
    CopyOutcome.SUCCESS: 0,
    CopyOutcome.FAILURE: 1,
    CopyOutcome.PARTIAL_SUCCESS: 2,
}

# 移除默认的处理器
logger.remove()

# 添加文件处理器
logger.add(
    "copy.log",
    rotation="500 MB",
    level="INFO",
    format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# 添加控制台处理器
logger.add(
    sys.stdout,
    level="DEBUG",
    format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)

def parse_args() -> str:
    """解析命令行参数"""
    config_path = None
    for arg in sys.argv[1:]:
        if arg.startswith("config="):
            # 去除可能存在的引号
            config_path = arg.split("=", 1)[1].strip("'\"")
            break

    if not config_path:
        raise ValueError("Missing required argument: config=<path_to_config_file>")

    logger.debug(f"Parsed config path: {config_path}")
    return config_path

async def main() -> int:
    config = load_config(parse_args())
    source = ConnectorFactory.get_source(config.source)
    target = ConnectorFactory.get_target(config.target)

    try:
        await source.connect()
        await target.connect()
        status = await check_connections(source, target)
        if not status["overall"]:
            logger.error("Database connection check failed")
            return EXIT_CODES[CopyOutcome.FAILURE]

        logger.warning(f"目标表 {config.table} 如已存在将被删除并重建")
        copier = TableCopier(source, target, config.transfer, config.verify_sample_rows)
        report = await copier.copy_table(config.table)
        logger.info(f"Report: {json.dumps(report.to_dict(), ensure_ascii=False)}")
        return EXIT_CODES[report.outcome]
    finally:
        await source.disconnect()
        await target.disconnect()

if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except Exception as e:
        logger.error(f"Copy failed: {str(e)}")
        sys.exit(EXIT_CODES[CopyOutcome.FAILURE])

import json
from typing import Any, Dict
from tablecopy.models.config import CopyConfig, DatabaseConfig, TransferConfig
from loguru import logger

# 配置文件中未给出时使用的传输参数
DEFAULT_TRANSFER_SETTINGS: Dict[str, Any] = {
    "batch_size": 5000,
    "page_size": 10000,
    "max_retries": 3,
    "checkpoint_interval": 50000,
    "progress_interval_ms": 5000,
    "retry_base_delay": 1.0,
    "memory_check_interval": 10,
    "memory_warn_mb": 1000,
    "memory_reclaim_mb": 2000,
}

def build_config(data: Dict[str, Any]) -> CopyConfig:
    """
    从字典构建复制配置

    Raises:
        KeyError: 缺少必要字段
        TypeError: 数据库配置包含未知字段
        ValueError: 传输参数无效
    """
    source_config = DatabaseConfig(**data['source'])
    target_config = DatabaseConfig(**data['target'])

    transfer_data = data.get('transfer', {})
    transfer_kwargs = {}
    for field, default in DEFAULT_TRANSFER_SETTINGS.items():
        if field in transfer_data:
            transfer_kwargs[field] = transfer_data[field]
            logger.debug(f"使用配置文件中的 {field}: {transfer_data[field]}")
        else:
            transfer_kwargs[field] = default
            logger.debug(f"使用默认值 {field}: {default}")

    return CopyConfig(
        source=source_config,
        target=target_config,
        table=data['table'],
        transfer=TransferConfig(**transfer_kwargs),
        verify_sample_rows=data.get('verify_sample_rows', 3)
    )

def load_config(config_path: str) -> CopyConfig:
    """
    从JSON文件加载复制配置

    Args:
        config_path: 配置文件路径

    Returns:
        CopyConfig对象

    Raises:
        FileNotFoundError: 配置文件不存在
        ValueError: 配置内容无效
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"配置文件不存在: {config_path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"配置文件JSON格式错误: {str(e)}")

    try:
        return build_config(data)
    except KeyError as e:
        raise ValueError(f"配置文件缺少必要字段: {str(e)}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"配置文件加载失败: {str(e)}")

from typing import Optional
from dataclasses import dataclass

@dataclass
class DatabaseConfig:
    type: str
    host: str
    port: int
    username: str
    password: str
    database: str
    schema: Optional[str] = None
    sslmode: Optional[str] = None

@dataclass
class TransferConfig:
    """
    批量传输参数，全部必填，传输引擎内部不提供默认值

    Attributes:
        batch_size: 每条INSERT语句包含的行数
        page_size: 每次从源表读取的行数，必须不小于 batch_size
        max_retries: 每个批次的最大尝试次数
        checkpoint_interval: 每复制多少行输出一次检查点日志
        progress_interval_ms: 两次进度日志之间的最小间隔(毫秒)
        retry_base_delay: 重试等待的基础时长(秒)，第N次重试前等待 N * retry_base_delay
        memory_check_interval: 每处理多少个批次采样一次内存
        memory_warn_mb: 内存告警水位(MB)
        memory_reclaim_mb: 触发垃圾回收的内存水位(MB)
    """
    batch_size: int
    page_size: int
    max_retries: int
    checkpoint_interval: int
    progress_interval_ms: int
    retry_base_delay: float
    memory_check_interval: int
    memory_warn_mb: int
    memory_reclaim_mb: int

    def __post_init__(self):
        for name in ("batch_size", "page_size", "max_retries", "checkpoint_interval",
                     "memory_check_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive integer, got {getattr(self, name)}")
        if self.page_size < self.batch_size:
            raise ValueError(
                f"page_size ({self.page_size}) must not be smaller than batch_size ({self.batch_size})"
            )
        if self.progress_interval_ms < 0 or self.retry_base_delay < 0:
            raise ValueError("progress_interval_ms and retry_base_delay must not be negative")
        if self.memory_reclaim_mb < self.memory_warn_mb:
            raise ValueError("memory_reclaim_mb must not be lower than memory_warn_mb")

@dataclass
class CopyConfig:
    source: DatabaseConfig
    target: DatabaseConfig
    table: str
    transfer: TransferConfig
    verify_sample_rows: int = 3

from typing import Dict, Type
from tablecopy.connectors.base import SourceConnector, TargetConnector
from tablecopy.connectors.mysql import MySQLConnector
from tablecopy.connectors.postgresql import PostgreSQLConnector
from tablecopy.models.config import DatabaseConfig

class ConnectorFactory:
    _sources: Dict[str, Type[SourceConnector]] = {
        "mysql": MySQLConnector,
    }
    _targets: Dict[str, Type[TargetConnector]] = {
        "postgresql": PostgreSQLConnector,
    }

    @classmethod
    def get_source(cls, config: DatabaseConfig) -> SourceConnector:
        """
        获取源库连接器实例

        Raises:
            ValueError: 如果数据库类型不支持作为源库
        """
        connector_class = cls._sources.get(config.type.lower())
        if not connector_class:
            raise ValueError(f"Unsupported source database type: {config.type}")
        return connector_class(config)

    @classmethod
    def get_target(cls, config: DatabaseConfig) -> TargetConnector:
        """
        获取目标库连接器实例

        Raises:
            ValueError: 如果数据库类型不支持作为目标库
        """
        connector_class = cls._targets.get(config.type.lower())
        if not connector_class:
            raise ValueError(f"Unsupported target database type: {config.type}")
        return connector_class(config)

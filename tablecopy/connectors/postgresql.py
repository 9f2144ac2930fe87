from typing import Any, Dict

from sqlalchemy.engine import URL

from tablecopy.connectors.base import TargetConnector


class PostgreSQLConnector(TargetConnector):
    dialect_name = "postgresql"

    def _build_url(self) -> URL:
        return URL.create(
            "postgresql+psycopg2",
            username=self.config.username,
            password=self.config.password,
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
        )

    def _engine_options(self) -> Dict[str, Any]:
        connect_args = {}
        # 添加schema搜索路径
        if self.config.schema:
            connect_args["options"] = f"-csearch_path={self.config.schema}"
        if self.config.sslmode:
            connect_args["sslmode"] = self.config.sslmode
        return {"connect_args": connect_args} if connect_args else {}

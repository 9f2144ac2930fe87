import unittest

from sqlalchemy import inspect, text

from fakes import sqlite_engine
from tablecopy.connectors.factory import ConnectorFactory
from tablecopy.connectors.mysql import MySQLConnector
from tablecopy.connectors.postgresql import PostgreSQLConnector
from tablecopy.models.config import DatabaseConfig
from tablecopy.models.schema import TargetColumnSpec
from tablecopy.services.health import check_connections
from tablecopy.services.schema_builder import SchemaBuilder


def db_config(db_type: str) -> DatabaseConfig:
    return DatabaseConfig(
        type=db_type, host="localhost", port=5432, username="copy",
        password="p@ss:word", database="shop",
    )


SPECS = [
    TargetColumnSpec("id", "INTEGER", nullable=False, is_primary_key=True),
    TargetColumnSpec("name", "VARCHAR(120)", nullable=False),
    TargetColumnSpec("active", "BOOLEAN", nullable=False, default_expr="TRUE"),
]


class TestMySQLConnector(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = sqlite_engine()
        with self.engine.begin() as conn:
            conn.execute(text("CREATE TABLE users (id INTEGER, name TEXT)"))
            for i in range(1, 8):
                conn.execute(text("INSERT INTO users VALUES (:id, :name)"), {"id": i, "name": f"user{i}"})
        self.connector = MySQLConnector(db_config("mysql"), engine=self.engine)
        await self.connector.connect()

    async def asyncTearDown(self):
        await self.connector.disconnect()

    async def test_count_rows(self):
        self.assertEqual(await self.connector.count_rows("users"), 7)

    async def test_fetch_page_returns_tuples_in_requested_order(self):
        rows = await self.connector.fetch_page("users", ["name", "id"], 5, 10)
        self.assertEqual(rows, [("user6", 6), ("user7", 7)])

    async def test_fetch_page_past_end_is_empty(self):
        self.assertEqual(await self.connector.fetch_page("users", ["id"], 20, 5), [])

    def test_row_to_descriptor(self):
        column = MySQLConnector._to_descriptor({
            "COLUMN_NAME": "active",
            "COLUMN_TYPE": b"tinyint(1)",
            "IS_NULLABLE": "NO",
            "COLUMN_KEY": "",
            "COLUMN_DEFAULT": 1,
        })
        self.assertEqual(column.name, "active")
        self.assertEqual(column.source_type, "tinyint(1)")
        self.assertFalse(column.nullable)
        self.assertFalse(column.is_primary_key)
        self.assertEqual(column.default_raw, "1")

    def test_url_escapes_credentials(self):
        url = MySQLConnector(db_config("mysql"))._build_url()
        self.assertEqual(url.drivername, "mysql+pymysql")
        self.assertEqual(url.password, "p@ss:word")
        self.assertEqual(url.database, "shop")


class TestPostgreSQLConnector(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = sqlite_engine()
        self.connector = PostgreSQLConnector(db_config("postgresql"), engine=self.engine)
        await self.connector.connect()
        self.builder = SchemaBuilder(self.connector)

    async def asyncTearDown(self):
        await self.connector.disconnect()

    async def test_create_insert_count_and_sample(self):
        await self.builder.create_table("users", SPECS)
        written = await self.connector.insert_rows("users", ["id", "name", "active"],
                                                   [(1, "a", True), (2, "b", False)])
        self.assertEqual(written, 2)
        self.assertEqual(await self.connector.count_rows("users"), 2)
        sample = await self.connector.sample_rows("users", 1)
        self.assertEqual(len(sample), 1)
        self.assertEqual(sample[0]["name"], "a")

    async def test_create_table_twice_drops_and_recreates(self):
        await self.builder.create_table("users", SPECS)
        first = [(col["name"], str(col["type"])) for col in inspect(self.engine).get_columns("users")]
        await self.connector.insert_rows("users", ["id", "name", "active"], [(1, "a", True)])

        await self.builder.create_table("users", SPECS)
        second = [(col["name"], str(col["type"])) for col in inspect(self.engine).get_columns("users")]

        self.assertEqual(first, second)
        self.assertEqual([name for name, _ in second], ["id", "name", "active"])
        self.assertEqual(await self.connector.count_rows("users"), 0)

    async def test_insert_without_rows_is_noop(self):
        self.assertEqual(await self.connector.insert_rows("users", ["id"], []), 0)

    def test_engine_options(self):
        config = db_config("postgresql")
        config.schema = "staging"
        config.sslmode = "require"
        options = PostgreSQLConnector(config)._engine_options()
        self.assertEqual(options["connect_args"]["options"], "-csearch_path=staging")
        self.assertEqual(options["connect_args"]["sslmode"], "require")
        self.assertEqual(PostgreSQLConnector(db_config("postgresql"))._engine_options(), {})


class TestFactoryAndHealth(unittest.IsolatedAsyncioTestCase):
    def test_factory_roles(self):
        self.assertIsInstance(ConnectorFactory.get_source(db_config("MySQL")), MySQLConnector)
        self.assertIsInstance(ConnectorFactory.get_target(db_config("postgresql")), PostgreSQLConnector)
        with self.assertRaises(ValueError):
            ConnectorFactory.get_source(db_config("postgresql"))
        with self.assertRaises(ValueError):
            ConnectorFactory.get_target(db_config("sqlserver"))

    async def test_check_connections(self):
        source = MySQLConnector(db_config("mysql"), engine=sqlite_engine())
        target = PostgreSQLConnector(db_config("postgresql"))
        status = await check_connections(source, target)
        self.assertEqual(status, {"mysql": True, "postgresql": False, "overall": False})


if __name__ == '__main__':
    unittest.main()

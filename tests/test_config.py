import json
import os
import tempfile
import unittest

from tablecopy.config.loader import DEFAULT_TRANSFER_SETTINGS, build_config, load_config
from fakes import make_config

CONFIG_DATA = {
    "source": {
        "type": "mysql", "host": "10.0.0.5", "port": 3306,
        "username": "reader", "password": "secret", "database": "shop",
    },
    "target": {
        "type": "postgresql", "host": "10.0.0.6", "port": 5432,
        "username": "writer", "password": "secret", "database": "shop", "schema": "public",
    },
    "table": "users",
    "transfer": {"batch_size": 200, "page_size": 1000},
}


class TestConfigLoader(unittest.TestCase):
    def write_config(self, content: str) -> str:
        handle, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(handle, "w", encoding="utf-8") as f:
            f.write(content)
        self.addCleanup(os.remove, path)
        return path

    def test_load_config_applies_defaults(self):
        config = load_config(self.write_config(json.dumps(CONFIG_DATA)))
        self.assertEqual(config.table, "users")
        self.assertEqual(config.source.type, "mysql")
        self.assertEqual(config.target.schema, "public")
        self.assertEqual(config.transfer.batch_size, 200)
        self.assertEqual(config.transfer.page_size, 1000)
        self.assertEqual(config.transfer.max_retries, DEFAULT_TRANSFER_SETTINGS["max_retries"])
        self.assertEqual(config.transfer.checkpoint_interval, 50000)
        self.assertEqual(config.verify_sample_rows, 3)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/copy.json")

    def test_invalid_json(self):
        with self.assertRaises(ValueError):
            load_config(self.write_config("{not json"))

    def test_missing_field(self):
        data = dict(CONFIG_DATA)
        del data["table"]
        with self.assertRaisesRegex(ValueError, "table"):
            load_config(self.write_config(json.dumps(data)))

    def test_page_size_smaller_than_batch_size(self):
        data = dict(CONFIG_DATA, transfer={"batch_size": 500, "page_size": 100})
        with self.assertRaises(ValueError):
            load_config(self.write_config(json.dumps(data)))

    def test_unknown_database_field(self):
        data = dict(CONFIG_DATA, source=dict(CONFIG_DATA["source"], charset="latin1"))
        with self.assertRaises(ValueError):
            load_config(self.write_config(json.dumps(data)))

    def test_build_config_without_transfer_section(self):
        data = dict(CONFIG_DATA)
        del data["transfer"]
        config = build_config(data)
        self.assertEqual(config.transfer.batch_size, 5000)
        self.assertEqual(config.transfer.page_size, 10000)


class TestTransferConfig(unittest.TestCase):
    def test_rejects_non_positive_sizes(self):
        for field in ("batch_size", "max_retries", "checkpoint_interval", "memory_check_interval"):
            with self.assertRaises(ValueError):
                make_config(**{field: 0})

    def test_rejects_inverted_memory_marks(self):
        with self.assertRaises(ValueError):
            make_config(memory_warn_mb=500, memory_reclaim_mb=100)

    def test_rejects_negative_delay(self):
        with self.assertRaises(ValueError):
            make_config(retry_base_delay=-1)


if __name__ == '__main__':
    unittest.main()

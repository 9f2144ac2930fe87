import unittest

from tablecopy.models.schema import ColumnDescriptor
from tablecopy.sql.type_mapper import FALLBACK_TYPE, map_column, map_default, map_type


class TestMapType(unittest.TestCase):
    def test_sized_varchar_keeps_length(self):
        self.assertEqual(map_type("varchar(120)"), "VARCHAR(120)")
        self.assertEqual(map_type("VARCHAR(7)"), "VARCHAR(7)")

    def test_varchar_without_length_uses_default_width(self):
        self.assertEqual(map_type("varchar"), "VARCHAR(255)")
        self.assertEqual(map_type("varchar(abc)"), "VARCHAR(255)")

    def test_boolean_before_generic_integer(self):
        self.assertEqual(map_type("tinyint(1)"), "BOOLEAN")
        self.assertEqual(map_type("tinyint"), "INTEGER")
        self.assertEqual(map_type("tinyint(4)"), "INTEGER")

    def test_integer_family(self):
        self.assertEqual(map_type("int(11)"), "INTEGER")
        self.assertEqual(map_type("int"), "INTEGER")
        self.assertEqual(map_type("int(10) unsigned"), "INTEGER")
        self.assertEqual(map_type("mediumint(8)"), "INTEGER")
        self.assertEqual(map_type("bigint(20)"), "BIGINT")
        self.assertEqual(map_type("bigint unsigned"), "BIGINT")
        self.assertEqual(map_type("smallint(6)"), "SMALLINT")

    def test_point_is_not_an_integer(self):
        self.assertEqual(map_type("point"), FALLBACK_TYPE)

    def test_text_family(self):
        for source_type in ("text", "tinytext", "mediumtext", "longtext"):
            self.assertEqual(map_type(source_type), "TEXT")

    def test_decimal(self):
        self.assertEqual(map_type("decimal(10,2)"), "DECIMAL(10,2)")
        self.assertEqual(map_type("decimal(12, 4) unsigned"), "DECIMAL(12,4)")
        self.assertEqual(map_type("decimal(8)"), "DECIMAL(8)")
        self.assertEqual(map_type("decimal"), "DECIMAL")

    def test_floating_point(self):
        self.assertEqual(map_type("float"), "REAL")
        self.assertEqual(map_type("double"), "DOUBLE PRECISION")

    def test_temporal(self):
        self.assertEqual(map_type("datetime"), "TIMESTAMP")
        self.assertEqual(map_type("datetime(6)"), "TIMESTAMP")
        self.assertEqual(map_type("timestamp"), "TIMESTAMP")
        self.assertEqual(map_type("date"), "DATE")
        self.assertEqual(map_type("time"), "TIME")

    def test_json_and_enum(self):
        self.assertEqual(map_type("json"), "JSON")
        self.assertEqual(map_type("enum('a','b')"), "VARCHAR(50)")

    def test_set_members_do_not_match_other_rules(self):
        self.assertEqual(map_type("set('int','x')"), FALLBACK_TYPE)
        self.assertEqual(map_type("set('date','time','json')"), FALLBACK_TYPE)
        self.assertEqual(map_type("enum('int','bigint')"), "VARCHAR(50)")

    def test_unknown_types_fall_back_to_text(self):
        for source_type in ("blob", "char(10)", "year", "set('x')", "", "geometry", "???"):
            self.assertEqual(map_type(source_type), FALLBACK_TYPE)

    def test_total_and_deterministic(self):
        samples = ["int", "varchar(3)", "weird(((", "tinyint(1)", None, "  DATE  "]
        for source_type in samples:
            first = map_type(source_type)
            self.assertIsInstance(first, str)
            self.assertTrue(first)
            self.assertEqual(first, map_type(source_type))


class TestMapDefault(unittest.TestCase):
    def test_absent_defaults(self):
        self.assertIsNone(map_default(None, "int"))
        self.assertIsNone(map_default("NULL", "varchar(10)"))

    def test_current_time_functions(self):
        self.assertEqual(map_default("CURRENT_TIMESTAMP", "timestamp"), "CURRENT_TIMESTAMP")
        self.assertEqual(map_default("current_timestamp()", "datetime"), "CURRENT_TIMESTAMP")
        self.assertEqual(map_default("now()", "datetime"), "CURRENT_TIMESTAMP")

    def test_numeric_literals_pass_through(self):
        self.assertEqual(map_default("0", "int"), "0")
        self.assertEqual(map_default("42", "int"), "42")
        self.assertEqual(map_default("-3.5", "decimal(4,1)"), "-3.5")

    def test_boolean_defaults(self):
        self.assertEqual(map_default("1", "tinyint(1)"), "TRUE")
        self.assertEqual(map_default("0", "tinyint(1)"), "FALSE")

    def test_string_literals_are_quoted(self):
        self.assertEqual(map_default("active", "varchar(20)"), "'active'")
        self.assertEqual(map_default("it's", "varchar(20)"), "'it''s'")


class TestMapColumn(unittest.TestCase):
    def test_descriptor_to_spec(self):
        column = ColumnDescriptor("status", "enum('on','off')", nullable=False, default_raw="on")
        spec = map_column(column)
        self.assertEqual(spec.name, "status")
        self.assertEqual(spec.target_type, "VARCHAR(50)")
        self.assertFalse(spec.nullable)
        self.assertFalse(spec.is_primary_key)
        self.assertEqual(spec.default_expr, "'on'")


if __name__ == '__main__':
    unittest.main()

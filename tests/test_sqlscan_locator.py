import unittest

from querygrid import sqlscan
from querygrid.errors import NoTableResolved, ParseAmbiguous
from querygrid.locator import locate, require_table, resolve
from querygrid.models import TableReference


class TokenizerTests(unittest.TestCase):
    def test_comments_and_literals_are_not_keywords(self):
        sql = "SELECT 'FROM x' AS a /* FROM y */ -- FROM z\nFROM t"
        words = [tok.upper for tok in sqlscan.significant(sqlscan.tokenize(sql)) if tok.kind == sqlscan.WORD]
        self.assertEqual(words, ["SELECT", "AS", "A", "FROM", "T"])

    def test_depth_tracks_parentheses(self):
        tokens = sqlscan.significant(sqlscan.tokenize("SELECT (SELECT 1 FROM a) FROM b"))
        froms = [tok.depth for tok in tokens if tok.is_word("FROM")]
        self.assertEqual(froms, [1, 0])

    def test_strip_comments_keeps_tokens_apart(self):
        self.assertEqual(sqlscan.strip_comments("-- head\nSELECT a/*x*/FROM t  "), "SELECT a FROM t")

    def test_unterminated_string_runs_to_end(self):
        tokens = sqlscan.tokenize("SELECT 'abc FROM t")
        self.assertEqual(tokens[-1].kind, sqlscan.STRING)

    def test_find_top_level_pairs_order_by(self):
        tokens = sqlscan.significant(sqlscan.tokenize("SELECT a FROM t ORDER BY a"))
        idx = sqlscan.find_top_level(tokens, {"ORDER BY"})
        self.assertTrue(tokens[idx].is_word("ORDER"))
        self.assertEqual(sqlscan.find_top_level(tokens, {"GROUP BY"}), len(tokens))

    def test_digit_led_identifiers_are_words(self):
        tokens = sqlscan.significant(sqlscan.tokenize("SELECT 1e5, 2024_sales, 3x, 1.5, .5 FROM shop.2024_q1"))
        kinds = [(tok.kind, tok.text) for tok in tokens if tok.kind in (sqlscan.WORD, sqlscan.NUMBER)]
        self.assertEqual(
            kinds,
            [
                (sqlscan.WORD, "SELECT"),
                (sqlscan.NUMBER, "1e5"),
                (sqlscan.WORD, "2024_sales"),
                (sqlscan.WORD, "3x"),
                (sqlscan.NUMBER, "1.5"),
                (sqlscan.NUMBER, ".5"),
                (sqlscan.WORD, "FROM"),
                (sqlscan.WORD, "shop"),
                (sqlscan.WORD, "2024_q1"),
            ],
        )


class LocatorTests(unittest.TestCase):
    def test_database_qualified_name(self):
        self.assertEqual(
            locate("SELECT * FROM mydb.users WHERE id=1"),
            TableReference(table_name="users", database="mydb"),
        )

    def test_table_name_starting_with_digits(self):
        self.assertEqual(locate("SELECT * FROM 2024_sales WHERE id = 1"), TableReference("2024_sales"))
        self.assertEqual(locate("SELECT * FROM shop.2024_sales"), TableReference("2024_sales", "shop"))

    def test_no_from(self):
        self.assertIsNone(locate("SELECT 1"))
        self.assertIsNone(locate(""))
        self.assertIsNone(locate(None))

    def test_quoted_segments_are_unquoted(self):
        self.assertEqual(locate('SELECT * FROM "my db"."user list"'), TableReference("user list", "my db"))
        self.assertEqual(locate("SELECT * FROM `shop`.`orders`"), TableReference("orders", "shop"))
        self.assertEqual(locate("SELECT * FROM [dbo].[Order Lines]"), TableReference("Order Lines", "dbo"))

    def test_case_insensitive_and_clause_terminators(self):
        self.assertEqual(locate("select * from users order by id"), TableReference("users"))
        self.assertEqual(locate("SELECT * FROM users u LEFT JOIN x ON u.id = x.id"), TableReference("users"))
        self.assertEqual(locate("SELECT * FROM users LIMIT 5;"), TableReference("users"))

    def test_first_of_multiple_tables(self):
        self.assertEqual(locate("SELECT * FROM a, b WHERE a.id = b.id"), TableReference("a"))

    def test_last_top_level_from_wins(self):
        sql = "SELECT (SELECT max(x) FROM other) AS m FROM main_table"
        self.assertEqual(locate(sql), TableReference("main_table"))

    def test_leading_comments(self):
        sql = "-- FROM fake\n/* FROM fake2 */ SELECT * FROM real_table"
        self.assertEqual(locate(sql), TableReference("real_table"))

    def test_is_distinct_from_is_not_a_clause(self):
        sql = "SELECT * FROM t WHERE a IS DISTINCT FROM b"
        self.assertEqual(locate(sql), TableReference("t"))

    def test_subquery_source_is_ambiguous(self):
        with self.assertRaises(ParseAmbiguous):
            resolve("SELECT * FROM (SELECT 1) AS s")
        self.assertIsNone(locate("SELECT * FROM (SELECT 1) AS s"))

    def test_three_part_name_is_ambiguous(self):
        self.assertIsNone(locate("SELECT * FROM srv.db.tbl"))

    def test_empty_clause(self):
        self.assertIsNone(locate("SELECT * FROM WHERE x = 1"))

    def test_require_table_raises_no_table_resolved(self):
        with self.assertRaises(NoTableResolved):
            require_table("SELECT 1")
        self.assertEqual(require_table("SELECT * FROM t"), TableReference("t"))


if __name__ == "__main__":
    unittest.main()

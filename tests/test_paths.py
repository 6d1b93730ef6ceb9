import unittest
from datetime import datetime, timezone

from s3fm.errors import InvalidInputError
from s3fm.paths import (
    archive_filename,
    ascend,
    breadcrumbs,
    descend,
    folder_marker_key,
    is_valid_prefix,
    join_key,
    relative_name,
)


class DescendAscendTests(unittest.TestCase):
    def test_descend_appends_name_and_separator(self):
        self.assertEqual("reports/", descend("", "reports"))
        self.assertEqual("reports/2024/", descend("reports/", "2024"))

    def test_descend_rejects_empty_or_nested_names(self):
        with self.assertRaises(InvalidInputError):
            descend("", "")
        with self.assertRaises(InvalidInputError):
            descend("reports/", "a/b")

    def test_descend_rejects_invalid_prefix(self):
        with self.assertRaises(InvalidInputError):
            descend("reports", "2024")

    def test_ascend_strips_last_component(self):
        self.assertEqual("reports/", ascend("reports/2024/"))
        self.assertEqual("", ascend("reports/"))
        self.assertEqual("", ascend(""))

    def test_round_trip_returns_original_prefix(self):
        for prefix in ["", "a/", "a/b/", "deep/er/still/"]:
            for name in ["x", "with space", "ünïcode", ".hidden"]:
                with self.subTest(prefix=prefix, name=name):
                    self.assertEqual(prefix, ascend(descend(prefix, name)))

    def test_ascend_twice_reaches_root(self):
        self.assertEqual("", ascend(ascend("reports/2024/")))


class KeyHelperTests(unittest.TestCase):
    def test_is_valid_prefix(self):
        self.assertTrue(is_valid_prefix(""))
        self.assertTrue(is_valid_prefix("a/b/"))
        self.assertFalse(is_valid_prefix("a"))
        self.assertFalse(is_valid_prefix("/a/"))
        self.assertFalse(is_valid_prefix("a//"))

    def test_join_key_validates_name(self):
        self.assertEqual("docs/a.txt", join_key("docs/", "a.txt"))
        with self.assertRaises(InvalidInputError):
            join_key("docs/", "")

    def test_relative_name_only_strips_leading_prefix(self):
        self.assertEqual("a.txt", relative_name("docs/a.txt", "docs/"))
        self.assertEqual("sub", relative_name("docs/sub/", "docs/"))
        self.assertEqual("other/docs/a.txt", relative_name("other/docs/a.txt", "docs/"))

    def test_folder_marker_key(self):
        self.assertEqual("docs/new/.keep", folder_marker_key("docs/", "new"))

    def test_archive_filename_single_key_uses_stem(self):
        self.assertEqual("report.zip", archive_filename(["docs/report.pdf"]))

    def test_archive_filename_multiple_keys_uses_timestamp(self):
        moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
        expected = f"files-{int(moment.timestamp() * 1000)}.zip"
        self.assertEqual(expected, archive_filename(["a.txt", "b.txt"], now=moment))

    def test_breadcrumbs_accumulate_prefixes(self):
        self.assertEqual([("/", "")], breadcrumbs(""))
        self.assertEqual(
            [("/", ""), ("reports", "reports/"), ("2024", "reports/2024/")],
            breadcrumbs("reports/2024/"),
        )


if __name__ == "__main__":
    unittest.main()

import unittest

from s3fm import selection
from s3fm.models import BrowserView, FolderEntry, ObjectEntry


def make_view(**kwargs):
    defaults = {
        "bucket": "docs",
        "path": "reports/",
        "listing": (FolderEntry("2024"), ObjectEntry("a.txt"), ObjectEntry("b.txt")),
    }
    defaults.update(kwargs)
    return BrowserView(**defaults)


class SelectionTests(unittest.TestCase):
    def test_toggle_adds_and_removes_in_insertion_order(self):
        view = selection.toggle(make_view(), "b.txt", True)
        view = selection.toggle(view, "a.txt", True)
        self.assertEqual(("b.txt", "a.txt"), view.selection)

        view = selection.toggle(view, "b.txt", False)
        self.assertEqual(("a.txt",), view.selection)

    def test_toggle_is_idempotent(self):
        once = selection.toggle(make_view(), "a.txt", True)
        twice = selection.toggle(once, "a.txt", True)
        self.assertIs(once, twice)

        cleared = selection.toggle(make_view(), "a.txt", False)
        self.assertEqual((), cleared.selection)

    def test_folders_and_unknown_names_cannot_be_selected(self):
        view = make_view()
        self.assertIs(view, selection.toggle(view, "2024", True))
        self.assertIs(view, selection.toggle(view, "missing.txt", True))

    def test_clear_and_select_all(self):
        view = selection.select_all(make_view(selection=("b.txt",)))
        self.assertEqual(("b.txt", "a.txt"), view.selection)
        self.assertEqual((), selection.clear(view).selection)

    def test_prune_drops_names_missing_from_listing(self):
        view = make_view(listing=(ObjectEntry("a.txt"),), selection=("b.txt", "a.txt"))
        self.assertEqual(("a.txt",), selection.prune(view).selection)

    def test_selected_keys_include_current_path(self):
        view = make_view(selection=("b.txt", "a.txt"))
        self.assertEqual(["reports/b.txt", "reports/a.txt"], selection.selected_keys(view))
        self.assertEqual([], selection.selected_keys(make_view()))


if __name__ == "__main__":
    unittest.main()

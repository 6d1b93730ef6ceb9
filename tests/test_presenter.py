import unittest
from dataclasses import replace

from s3fm.controller import BrowserController
from s3fm.errors import InvalidInputError
from s3fm.models import ChildListing, ObjectEntry
from s3fm.navigator import DirectoryNavigator
from s3fm.presenter import BrowserPresenter, format_error
from s3fm.profiles import ConnectionProfile
from s3fm.settings import AppSettings

TIMEOUT = 5


class FakeGateway:
    def __init__(self):
        self.objects = {}

    async def list_buckets(self):
        return ["docs"]

    async def list_immediate_children(self, bucket, prefix):
        names = [key[len(prefix):] for key in sorted(self.objects) if key.startswith(prefix)]
        folders = tuple(dict.fromkeys(name.split("/", 1)[0] for name in names if "/" in name))
        objects = tuple(ObjectEntry(name) for name in names if "/" not in name)
        return ChildListing(folders=folders, objects=objects)

    async def delete_object(self, bucket, key):
        self.objects.pop(key)


class FakeProfileStorage:
    def __init__(self, profiles):
        self.profiles = list(profiles)

    def load(self):
        return list(self.profiles)

    def save(self, profiles):
        self.profiles = list(profiles)


class FakeSettingsStorage:
    def __init__(self, settings=None):
        self.settings = settings or AppSettings()
        self.saved = []

    def load(self):
        return replace(self.settings)

    def save(self, settings):
        self.saved.append(settings)


class BrowserPresenterTests(unittest.TestCase):
    def setUp(self):
        self.gateway = FakeGateway()
        self.gateway.objects = {"a.txt": b"aaa", "reports/q1.pdf": b"pdf"}
        self.controller = BrowserController(
            navigator=DirectoryNavigator(),
            gateway_factory=lambda profile: self.gateway,
            storage=FakeProfileStorage([ConnectionProfile(name="local")]),
        )
        self.settings_storage = FakeSettingsStorage(AppSettings(remember_last_bucket=True))
        self.dispatched = []

        def dispatch(func):
            self.dispatched.append(func)
            func()

        self.presenter = BrowserPresenter(
            controller=self.controller, settings_storage=self.settings_storage, dispatch=dispatch
        )
        self.addCleanup(self.presenter.close)

    def test_connect_reports_buckets_and_remembers_profile(self):
        results, done = [], []

        self.presenter.connect(
            profile_name="local", on_success=results.append, on_done=lambda: done.append(True)
        ).result(TIMEOUT)

        self.assertEqual([["docs"]], results)
        self.assertEqual([True], done)
        self.assertTrue(self.presenter.is_connected)
        self.assertEqual("local", self.settings_storage.saved[-1].last_connection)

    def test_errors_are_reported_as_messages(self):
        errors = []

        future = self.presenter.enter_bucket("docs", on_error=errors.append)

        self.assertIsNone(future.result(TIMEOUT))
        self.assertEqual(["Not connected to S3"], errors)

    def test_view_listener_receives_updates_through_dispatch(self):
        views = []
        self.presenter.set_view_listener(views.append)
        self.presenter.connect(profile_name="local").result(TIMEOUT)

        self.presenter.enter_bucket("docs").result(TIMEOUT)
        self.presenter.toggle("a.txt", True).result(TIMEOUT)

        self.assertEqual("docs", views[-1].bucket)
        self.assertEqual(("a.txt",), views[-1].selection)
        self.assertEqual("docs", self.settings_storage.saved[-1].last_bucket)
        self.assertGreaterEqual(len(self.dispatched), len(views))

    def test_delete_selected_returns_count(self):
        results = []
        self.presenter.connect(profile_name="local").result(TIMEOUT)
        self.presenter.enter_bucket("docs").result(TIMEOUT)
        self.presenter.toggle("a.txt", True).result(TIMEOUT)

        self.presenter.delete_selected(on_success=results.append).result(TIMEOUT)

        self.assertEqual([1], results)
        self.assertEqual([], self.presenter.view.object_names)

    def test_save_settings_updates_navigator(self):
        self.presenter.save_settings(AppSettings(discard_stale_responses=True, hide_folder_markers=False))

        self.assertTrue(self.controller.navigator.discard_stale)
        self.assertFalse(self.controller.navigator.hide_markers)
        self.assertTrue(self.settings_storage.saved[-1].discard_stale_responses)

    def test_auto_connect_profile_requires_remember_flag(self):
        self.presenter.update_last_connection("local")
        self.assertEqual("local", self.presenter.maybe_auto_connect_profile())

        self.presenter.save_settings(AppSettings(remember_last_bucket=False, last_connection="local"))
        self.assertIsNone(self.presenter.maybe_auto_connect_profile())


class FormatErrorTests(unittest.TestCase):
    def test_uses_message_or_type_name(self):
        self.assertEqual("bad", format_error(InvalidInputError("bad")))
        self.assertEqual("KeyError", format_error(KeyError()))


if __name__ == "__main__":
    unittest.main()

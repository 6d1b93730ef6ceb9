from __future__ import annotations
"""PySide6-based UI for the S3 file manager."""
import logging
import os
from typing import Callable

from PySide6 import QtCore, QtGui, QtWidgets

from .errors import InvalidInputError
from .models import BrowserView, ObjectDetails
from .paths import breadcrumbs
from .presenter import BrowserPresenter
from .profiles import DEFAULT_ENDPOINT_URL, DEFAULT_REGION, ConnectionProfile
from .settings import LOG_LEVELS, AppSettings
from .ui_utils import (
    PackageInfo,
    describe_location,
    format_last_modified,
    format_size,
    metadata_rows,
    parse_metadata_rows,
)

ENTRY_NAME_ROLE = QtCore.Qt.UserRole + 1
ENTRY_FOLDER_ROLE = QtCore.Qt.UserRole + 2
COLUMNS = ["", "Name", "Size", "Last modified", "ETag"]
LOGGER = logging.getLogger(__name__)


class _DispatchBridge(QtCore.QObject):
    run = QtCore.Signal(object)


class MetadataEditor(QtWidgets.QWidget):
    """Editable key/value rows for user metadata."""

    def __init__(self, parent: QtWidgets.QWidget | None = None, *, values: dict[str, str] | None = None) -> None:
        super().__init__(parent)
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.table = QtWidgets.QTableWidget(0, 2, self)
        self.table.setHorizontalHeaderLabels(["Key", "Value"])
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.verticalHeader().setVisible(False)
        layout.addWidget(self.table)

        buttons = QtWidgets.QHBoxLayout()
        add_button = QtWidgets.QPushButton("Add Metadata")
        add_button.clicked.connect(lambda: self.add_row())
        remove_button = QtWidgets.QPushButton("Remove")
        remove_button.clicked.connect(self._remove_current_row)
        buttons.addWidget(add_button)
        buttons.addWidget(remove_button)
        buttons.addStretch(1)
        layout.addLayout(buttons)

        for key, value in metadata_rows(values or {}):
            self.add_row(key, value)

    def add_row(self, key: str = "", value: str = "") -> None:
        row = self.table.rowCount()
        self.table.insertRow(row)
        self.table.setItem(row, 0, QtWidgets.QTableWidgetItem(key))
        self.table.setItem(row, 1, QtWidgets.QTableWidgetItem(value))

    def _remove_current_row(self) -> None:
        row = self.table.currentRow()
        if row >= 0:
            self.table.removeRow(row)

    def rows(self) -> list[tuple[str, str]]:
        rows = []
        for row in range(self.table.rowCount()):
            key_item = self.table.item(row, 0)
            value_item = self.table.item(row, 1)
            rows.append((key_item.text() if key_item else "", value_item.text() if value_item else ""))
        return rows

    def metadata(self) -> dict[str, str]:
        return parse_metadata_rows(self.rows())


class S3FileManagerWindow(QtWidgets.QMainWindow):
    """Main window: buckets on the left, the current folder on the right."""

    def __init__(self, presenter: BrowserPresenter | None = None):
        super().__init__()
        self.setWindowTitle("S3 File Manager")
        self.resize(1000, 720)
        self.setMinimumSize(640, 480)

        self._dispatch_bridge = _DispatchBridge()
        self._dispatch_bridge.run.connect(lambda func: func())
        self.presenter = presenter or BrowserPresenter(dispatch=self._dispatch)
        self._settings = self.presenter.settings
        self._package_info = self.presenter.package_info
        self._view = BrowserView()
        self._rendering = False
        self._selected_connection = ""

        self._create_menu()
        self._create_widgets()
        self._refresh_connection_menu()
        self.presenter.set_view_listener(self._render_view)
        self._render_view(self.presenter.view)
        self._auto_connect_if_enabled()

    def _dispatch(self, func: Callable[[], None]) -> None:
        self._dispatch_bridge.run.emit(func)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.presenter.set_view_listener(None)
        self.presenter.close()
        super().closeEvent(event)

    def _create_menu(self) -> None:
        menubar = self.menuBar()

        self.file_menu = menubar.addMenu("File")
        self.upload_action = self.file_menu.addAction("Upload File...", self.upload_file)
        self.new_folder_action = self.file_menu.addAction("New Folder...", self.create_folder)
        self.download_action = self.file_menu.addAction("Download File...", self.download_selected)
        self.zip_action = self.file_menu.addAction("Download File(s) as Zip...", self.download_selected_as_zip)
        self.delete_action = self.file_menu.addAction("Delete Selected", self.delete_selected)
        self.file_menu.addSeparator()
        self.file_menu.addAction("Exit", self.close)

        self.connection_menu = menubar.addMenu("Connection")

        self.bucket_menu = menubar.addMenu("Buckets")
        self.bucket_menu.addAction("Refresh Buckets", self.refresh_buckets)
        self.bucket_menu.addAction("Create Bucket...", self.create_bucket)
        self.bucket_menu.addAction("Delete Bucket...", self.delete_bucket)

        options_menu = menubar.addMenu("Options")
        options_menu.addAction("Settings", self.open_settings_dialog)

        help_menu = menubar.addMenu("Help")
        help_menu.addAction("About", self.show_about_dialog)

    def _create_widgets(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QHBoxLayout(central)
        layout.setContentsMargins(12, 12, 12, 12)

        bucket_column = QtWidgets.QVBoxLayout()
        bucket_column.addWidget(QtWidgets.QLabel("Buckets"))
        self.bucket_list = QtWidgets.QListWidget(self)
        self.bucket_list.setMaximumWidth(260)
        self.bucket_list.itemClicked.connect(lambda item: self.enter_bucket(item.text()))
        bucket_column.addWidget(self.bucket_list, stretch=1)
        layout.addLayout(bucket_column)

        files_column = QtWidgets.QVBoxLayout()
        self.location_label = QtWidgets.QLabel("Select a Bucket")
        files_column.addWidget(self.location_label)

        nav_row = QtWidgets.QHBoxLayout()
        self.up_button = QtWidgets.QPushButton("Go Up")
        self.up_button.clicked.connect(self.go_up)
        nav_row.addWidget(self.up_button)
        self.breadcrumb_row = QtWidgets.QHBoxLayout()
        nav_row.addLayout(self.breadcrumb_row)
        nav_row.addStretch(1)
        self.upload_button = QtWidgets.QPushButton("Upload File")
        self.upload_button.clicked.connect(self.upload_file)
        nav_row.addWidget(self.upload_button)
        self.download_button = QtWidgets.QPushButton("Download File")
        self.download_button.clicked.connect(self.download_selected)
        nav_row.addWidget(self.download_button)
        self.zip_button = QtWidgets.QPushButton("Download File(s) as Zip")
        self.zip_button.clicked.connect(self.download_selected_as_zip)
        nav_row.addWidget(self.zip_button)
        files_column.addLayout(nav_row)

        self.file_table = QtWidgets.QTreeView(self)
        self.file_table.setRootIsDecorated(False)
        self.file_table.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.file_table.setContextMenuPolicy(QtCore.Qt.CustomContextMenu)
        self.file_table.customContextMenuRequested.connect(self._handle_table_right_click)
        self.file_table.doubleClicked.connect(self._handle_double_click)
        self._model = QtGui.QStandardItemModel(0, len(COLUMNS), self)
        self._model.setHorizontalHeaderLabels(COLUMNS)
        self._model.itemChanged.connect(self._handle_item_changed)
        self.file_table.setModel(self._model)
        files_column.addWidget(self.file_table, stretch=1)

        self.progress = QtWidgets.QProgressBar(self)
        self.progress.setRange(0, 0)
        self.progress.setVisible(False)
        files_column.addWidget(self.progress)

        self.status_label = QtWidgets.QLabel("Ready")
        files_column.addWidget(self.status_label)
        layout.addLayout(files_column, stretch=1)

        self.setCentralWidget(central)

    def _render_view(self, view: BrowserView) -> None:
        previous = self._view
        self._view = view
        if view.buckets != previous.buckets or view.bucket != previous.bucket:
            self._render_buckets(view)
        self.location_label.setText(describe_location(view))
        self._render_breadcrumbs(view)
        self.progress.setVisible(view.in_flight)
        if view.error:
            self._set_status(f"Error: {view.error}")
        elif view.in_flight:
            self._set_status("Loading...")
        else:
            self._set_status(f"{len(view.listing)} item(s), {len(view.selection)} selected")
        if view.listing is not previous.listing or view.selection != previous.selection:
            self._render_listing(view)
        self._refresh_controls()

    def _render_buckets(self, view: BrowserView) -> None:
        self.bucket_list.clear()
        for bucket in view.buckets:
            item = QtWidgets.QListWidgetItem(bucket)
            self.bucket_list.addItem(item)
            if bucket == view.bucket:
                item.setSelected(True)

    def _render_breadcrumbs(self, view: BrowserView) -> None:
        while self.breadcrumb_row.count():
            widget = self.breadcrumb_row.takeAt(0).widget()
            if widget:
                widget.deleteLater()
        if not view.has_bucket:
            return
        for label, prefix in breadcrumbs(view.path):
            button = QtWidgets.QPushButton(label)
            button.setFlat(True)
            button.clicked.connect(lambda _=False, value=prefix: self.go_to(value))
            self.breadcrumb_row.addWidget(button)

    def _render_listing(self, view: BrowserView) -> None:
        self._rendering = True
        try:
            self._model.removeRows(0, self._model.rowCount())
            selected = set(view.selection)
            for entry in view.listing:
                check_item = QtGui.QStandardItem()
                name_item = QtGui.QStandardItem(entry.name + ("/" if entry.is_folder else ""))
                for item in (check_item, name_item):
                    item.setData(entry.name, ENTRY_NAME_ROLE)
                    item.setData(entry.is_folder, ENTRY_FOLDER_ROLE)
                if entry.is_folder:
                    name_item.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_DirIcon))
                    row = [check_item, name_item, QtGui.QStandardItem(""), QtGui.QStandardItem(""),
                           QtGui.QStandardItem("")]
                else:
                    check_item.setCheckable(True)
                    check_item.setCheckState(QtCore.Qt.Checked if entry.name in selected else QtCore.Qt.Unchecked)
                    name_item.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_FileIcon))
                    row = [
                        check_item,
                        name_item,
                        QtGui.QStandardItem(format_size(entry.size)),
                        QtGui.QStandardItem(format_last_modified(entry.last_modified)),
                        QtGui.QStandardItem(entry.etag or ""),
                    ]
                self._model.appendRow(row)
        finally:
            self._rendering = False
        self.file_table.resizeColumnToContents(0)

    def _refresh_controls(self) -> None:
        view = self._view
        ready = self.presenter.is_connected and view.has_bucket
        count = len(view.selection)
        self.up_button.setEnabled(ready and not view.at_root)
        for widget in (self.upload_button, self.upload_action, self.new_folder_action):
            widget.setEnabled(ready)
        for widget in (self.download_button, self.download_action):
            widget.setEnabled(ready and count == 1)
        for widget in (self.zip_button, self.zip_action, self.delete_action):
            widget.setEnabled(ready and count > 0)

    def _handle_item_changed(self, item: QtGui.QStandardItem) -> None:
        if self._rendering or not item.isCheckable():
            return
        name = item.data(ENTRY_NAME_ROLE)
        self.presenter.toggle(name, item.checkState() == QtCore.Qt.Checked)

    def _handle_double_click(self, index: QtCore.QModelIndex) -> None:
        name = index.data(ENTRY_NAME_ROLE)
        if not name:
            return
        if index.data(ENTRY_FOLDER_ROLE):
            self.enter_folder(name)
        else:
            self.show_object_details(name)

    def _handle_table_right_click(self, pos: QtCore.QPoint) -> None:
        index = self.file_table.indexAt(pos)
        name = index.data(ENTRY_NAME_ROLE) if index.isValid() else None
        menu = QtWidgets.QMenu(self)
        if name and not index.data(ENTRY_FOLDER_ROLE):
            menu.addAction("Info / Metadata", lambda: self.show_object_details(name))
            menu.addSeparator()
        menu.addAction("Download File", self.download_selected).setEnabled(len(self._view.selection) == 1)
        menu.addAction("Download as Zip", self.download_selected_as_zip).setEnabled(bool(self._view.selection))
        menu.addAction("Delete Selected", self.delete_selected).setEnabled(bool(self._view.selection))
        menu.addSeparator()
        menu.addAction("New Folder...", self.create_folder)
        menu.addAction("Refresh", self.refresh)
        menu.exec(self.file_table.viewport().mapToGlobal(pos))

    def _refresh_connection_menu(self) -> None:
        self.connection_menu.clear()
        self.connection_menu.addAction("New Connection...", lambda: self.edit_connection(None))
        self.connection_menu.addSeparator()
        profiles = self.presenter.list_profiles()
        if not profiles:
            self.connection_menu.addAction("No saved connections").setEnabled(False)
        for profile in profiles:
            label = f"* {profile.name}" if profile.name == self._selected_connection else profile.name
            self.connection_menu.addAction(label, lambda value=profile.name: self.edit_connection(value))

    def edit_connection(self, profile_name: str | None) -> None:
        profile = None
        if profile_name:
            try:
                profile = self.presenter.get_profile(profile_name)
            except ValueError as exc:
                self._show_error("Error", str(exc))
                return
        dialog = ConnectionDialog(self, profile=profile)
        result = dialog.exec_and_get()
        if not result:
            LOGGER.debug("Connection dialog dismissed without action")
            return
        action = result["action"]
        LOGGER.debug("Connection dialog action: %s", action)
        if action == "delete":
            self.presenter.delete_profile(result["name"])
            self._refresh_connection_menu()
            return
        if action == "save_and_connect":
            try:
                self.presenter.save_profile(result["profile"], original_name=result["original_name"])
            except InvalidInputError as exc:
                self._show_error("Error", str(exc))
                return
            self._refresh_connection_menu()
            self.connect(result["profile"].name)

    def connect(self, profile_name: str) -> None:
        self._selected_connection = profile_name
        self.progress.setVisible(True)

        def handle_success(buckets: list[str]) -> None:
            self._refresh_connection_menu()
            self._set_status(f"Connected. {len(buckets)} bucket(s) loaded.")
            last_bucket = self._settings.last_bucket
            if self._settings.remember_last_bucket and last_bucket in buckets:
                self.enter_bucket(last_bucket)

        self.presenter.connect(
            profile_name=profile_name,
            on_success=handle_success,
            on_error=lambda msg: self._show_error("Connection Error", f"Error connecting to S3: {msg}"),
            on_done=lambda: self.progress.setVisible(self._view.in_flight),
        )

    def _auto_connect_if_enabled(self) -> None:
        last_connection = self.presenter.maybe_auto_connect_profile()
        if not last_connection:
            return
        if last_connection not in [profile.name for profile in self.presenter.list_profiles()]:
            return
        self._dispatch(lambda: self.connect(last_connection))

    def refresh_buckets(self, *_: object) -> None:
        if not self._require_connection():
            return
        self.presenter.refresh_buckets(
            on_error=lambda msg: self._show_error("Bucket Error", f"Error refreshing buckets: {msg}")
        )

    def create_bucket(self, *_: object) -> None:
        if not self._require_connection():
            return
        name, accepted = QtWidgets.QInputDialog.getText(self, "Create Bucket", "Bucket name:")
        if not accepted:
            return
        self.presenter.create_bucket(
            name,
            on_success=lambda _: self._set_status(f"Bucket created: {name}"),
            on_error=lambda msg: self._show_error("Bucket Error", f"Failed to create bucket: {msg}"),
        )

    def delete_bucket(self, *_: object) -> None:
        if not self._require_connection():
            return
        item = self.bucket_list.currentItem()
        name = item.text() if item else self._view.bucket
        if not name:
            self._show_error("Error", "Please select a bucket")
            return
        confirmed = QtWidgets.QMessageBox.question(
            self, "Delete Bucket", f"Are you sure you want to delete the bucket: {name}?"
        )
        if confirmed != QtWidgets.QMessageBox.Yes:
            return
        self.presenter.delete_bucket(
            name,
            on_success=lambda _: self._set_status(f"Bucket deleted: {name}"),
            on_error=lambda msg: self._show_error("Bucket Error", f"Failed to delete bucket: {msg}"),
        )

    def enter_bucket(self, bucket: str) -> None:
        self.presenter.enter_bucket(
            bucket, on_error=lambda msg: self._show_error("List Error", f"Error loading bucket files: {msg}")
        )

    def enter_folder(self, name: str) -> None:
        self.presenter.enter_folder(
            name, on_error=lambda msg: self._show_error("List Error", f"Error fetching folder content: {msg}")
        )

    def go_up(self, *_: object) -> None:
        self.presenter.go_up(
            on_error=lambda msg: self._show_error("List Error", f"Error fetching parent folder content: {msg}")
        )

    def go_to(self, prefix: str) -> None:
        self.presenter.go_to(prefix, on_error=lambda msg: self._show_error("List Error", msg))

    def refresh(self, *_: object) -> None:
        self.presenter.refresh(on_error=lambda msg: self._show_error("List Error", msg))

    def create_folder(self, *_: object) -> None:
        if not self._view.has_bucket:
            return
        name, accepted = QtWidgets.QInputDialog.getText(self, "New Folder", "Folder name:")
        if not accepted:
            return
        self.presenter.create_folder(
            name,
            on_success=lambda prefix: self._set_status(f"Folder created: {prefix}"),
            on_error=lambda msg: self._show_error("Folder Error", f"Failed to create folder: {msg}"),
        )

    def upload_file(self, *_: object) -> None:
        if not self._view.has_bucket:
            return
        dialog = UploadDialog(self, bucket=self._view.bucket, prefix=self._view.path)
        result = dialog.exec_and_get()
        if not result:
            return
        self.presenter.upload_file(
            result["source_path"],
            result["metadata"],
            on_success=lambda key: self._set_status(f"Uploaded {key}"),
            on_error=lambda msg: self._show_error("Upload Error", f"Failed to upload file: {msg}"),
        )

    def download_selected(self, *_: object) -> None:
        self._download(as_archive=False)

    def download_selected_as_zip(self, *_: object) -> None:
        self._download(as_archive=True)

    def _download(self, *, as_archive: bool) -> None:
        directory = QtWidgets.QFileDialog.getExistingDirectory(self, "Download To")
        if not directory:
            return
        self.presenter.save_selected(
            directory,
            as_archive=as_archive,
            on_success=lambda path: self._set_status(f"Saved {path}"),
            on_error=lambda msg: self._show_error("Download Error", f"Failed to download file: {msg}"),
        )

    def delete_selected(self, *_: object) -> None:
        names = list(self._view.selection)
        if not names:
            return
        confirmed = QtWidgets.QMessageBox.question(
            self, "Delete Files", f"Delete {len(names)} selected file(s)?"
        )
        if confirmed != QtWidgets.QMessageBox.Yes:
            return
        self.presenter.delete_selected(
            on_success=lambda count: self._set_status(f"Deleted {count} file(s)"),
            on_error=lambda msg: self._show_error("Delete Error", f"Failed to delete: {msg}"),
        )

    def show_object_details(self, name: str) -> None:
        dialog = ObjectDetailsDialog(self, bucket=self._view.bucket, key=f"{self._view.path}{name}")
        self.presenter.object_details(name, on_success=dialog.display_details, on_error=dialog.display_error)
        if dialog.exec() != QtWidgets.QDialog.Accepted or dialog.updated_metadata is None:
            return
        self.presenter.update_metadata(
            name,
            dialog.updated_metadata,
            on_success=lambda _: self._set_status(f"Metadata updated for {name}"),
            on_error=lambda msg: self._show_error("Metadata Error", f"Failed to update metadata: {msg}"),
        )

    def open_settings_dialog(self, *_: object) -> None:
        dialog = SettingsDialog(self, settings=self._settings)
        if dialog.exec() != QtWidgets.QDialog.Accepted:
            return
        self._settings = dialog.result_settings
        self.presenter.save_settings(self._settings)
        logging.getLogger().setLevel(self._settings.log_level)

    def show_about_dialog(self, *_: object) -> None:
        AboutDialog(self, package_info=self._package_info).exec()

    def _require_connection(self) -> bool:
        if self.presenter.is_connected:
            return True
        self._show_error("Error", "Please connect first")
        return False

    def _set_status(self, message: str) -> None:
        self.status_label.setText(message)

    def _show_error(self, title: str, message: str) -> None:
        self._set_status(message)
        QtWidgets.QMessageBox.critical(self, title, message)


class ConnectionDialog(QtWidgets.QDialog):
    """Modal dialog for creating or editing connection profiles."""

    def __init__(self, parent: QtWidgets.QWidget, *, profile: ConnectionProfile | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Edit Connection" if profile else "Create Connection")
        self.setModal(True)
        self._result: dict | None = None
        self.original_name = profile.name if profile else None

        layout = QtWidgets.QVBoxLayout(self)
        form = QtWidgets.QFormLayout()
        self.name_edit = QtWidgets.QLineEdit(profile.name if profile else "")
        self.endpoint_edit = QtWidgets.QLineEdit(profile.endpoint_url if profile else DEFAULT_ENDPOINT_URL)
        self.region_edit = QtWidgets.QLineEdit(profile.region if profile else DEFAULT_REGION)
        self.access_key_edit = QtWidgets.QLineEdit(profile.access_key if profile else "")
        self.secret_key_edit = QtWidgets.QLineEdit(profile.secret_key if profile else "")
        self.secret_key_edit.setEchoMode(QtWidgets.QLineEdit.Password)
        form.addRow("Name:", self.name_edit)
        form.addRow("Endpoint URL:", self.endpoint_edit)
        form.addRow("Region:", self.region_edit)
        form.addRow("Access Key ID:", self.access_key_edit)
        form.addRow("Secret Access Key:", self.secret_key_edit)
        layout.addLayout(form)

        buttons = QtWidgets.QHBoxLayout()
        buttons.addStretch(1)
        self.primary_button = QtWidgets.QPushButton("Save and Connect")
        self.primary_button.clicked.connect(self._on_save)
        buttons.addWidget(self.primary_button)
        cancel_button = QtWidgets.QPushButton("Cancel")
        cancel_button.clicked.connect(self.reject)
        buttons.addWidget(cancel_button)
        if profile:
            delete_button = QtWidgets.QPushButton("Delete")
            delete_button.clicked.connect(self._on_delete)
            buttons.addWidget(delete_button)
        layout.addLayout(buttons)

    def exec_and_get(self) -> dict | None:
        if self.exec() != QtWidgets.QDialog.Accepted:
            return None
        return self._result

    def _on_save(self) -> None:
        fields = [self.name_edit, self.endpoint_edit, self.access_key_edit, self.secret_key_edit]
        if not all(edit.text().strip() for edit in fields):
            QtWidgets.QMessageBox.critical(self, "Error", "Name, endpoint and both keys are required")
            return
        profile = ConnectionProfile(
            name=self.name_edit.text().strip(),
            endpoint_url=self.endpoint_edit.text().strip(),
            access_key=self.access_key_edit.text().strip(),
            secret_key=self.secret_key_edit.text().strip(),
            region=self.region_edit.text().strip() or DEFAULT_REGION,
        )
        self._result = {"action": "save_and_connect", "profile": profile, "original_name": self.original_name}
        self.accept()

    def _on_delete(self) -> None:
        confirmed = QtWidgets.QMessageBox.question(
            self, "Delete Connection", f"Delete connection '{self.original_name}'?"
        )
        if confirmed != QtWidgets.QMessageBox.Yes:
            return
        self._result = {"action": "delete", "name": self.original_name}
        self.accept()


class UploadDialog(QtWidgets.QDialog):
    """Choose a local file and the metadata to store with it."""

    def __init__(self, parent: QtWidgets.QWidget, *, bucket: str, prefix: str) -> None:
        super().__init__(parent)
        self.setWindowTitle("Upload File")
        self.setModal(True)
        self._result: dict | None = None

        layout = QtWidgets.QVBoxLayout(self)
        form = QtWidgets.QFormLayout()
        form.addRow("Destination:", QtWidgets.QLabel(f"s3://{bucket}/{prefix}"))
        file_row = QtWidgets.QHBoxLayout()
        self.source_edit = QtWidgets.QLineEdit()
        self.source_edit.setReadOnly(True)
        browse_button = QtWidgets.QPushButton("Browse...")
        browse_button.clicked.connect(self._choose_file)
        file_row.addWidget(self.source_edit, stretch=1)
        file_row.addWidget(browse_button)
        form.addRow("Select File:", file_row)
        layout.addLayout(form)

        layout.addWidget(QtWidgets.QLabel("Metadata"))
        self.metadata_editor = MetadataEditor(self)
        layout.addWidget(self.metadata_editor)

        button_row = QtWidgets.QHBoxLayout()
        button_row.addStretch(1)
        upload_button = QtWidgets.QPushButton("Upload")
        upload_button.clicked.connect(self._on_upload)
        button_row.addWidget(upload_button)
        close_button = QtWidgets.QPushButton("Close")
        close_button.clicked.connect(self.reject)
        button_row.addWidget(close_button)
        layout.addLayout(button_row)

    def exec_and_get(self) -> dict | None:
        if self.exec() != QtWidgets.QDialog.Accepted:
            return None
        return self._result

    def _choose_file(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(self, "Select File")
        if path:
            self.source_edit.setText(path)

    def _on_upload(self) -> None:
        source_path = self.source_edit.text().strip()
        if not source_path or not os.path.isfile(source_path):
            QtWidgets.QMessageBox.critical(self, "Error", "No file selected for upload.")
            return
        try:
            metadata = self.metadata_editor.metadata()
        except InvalidInputError as exc:
            QtWidgets.QMessageBox.critical(self, "Error", str(exc))
            return
        self._result = {"source_path": source_path, "metadata": metadata}
        self.accept()


class ObjectDetailsDialog(QtWidgets.QDialog):
    """Loads object details and lets the user edit its metadata."""

    def __init__(self, parent: QtWidgets.QWidget, *, bucket: str, key: str) -> None:
        super().__init__(parent)
        self.setWindowTitle("File Metadata")
        self.setModal(True)
        self.updated_metadata: dict[str, str] | None = None

        layout = QtWidgets.QVBoxLayout(self)
        path_field = QtWidgets.QLineEdit(f"s3://{bucket}/{key}")
        path_field.setReadOnly(True)
        layout.addWidget(path_field)

        self.status_label = QtWidgets.QLabel("Loading metadata...")
        layout.addWidget(self.status_label)

        self.details_group = QtWidgets.QGroupBox("Details")
        details_layout = QtWidgets.QFormLayout(self.details_group)
        self._detail_fields: dict[str, QtWidgets.QLineEdit] = {}
        for label in ["Size", "Last modified", "Storage class", "ETag", "Content type"]:
            field = QtWidgets.QLineEdit("-")
            field.setReadOnly(True)
            details_layout.addRow(f"{label}:", field)
            self._detail_fields[label] = field
        self.details_group.setVisible(False)
        layout.addWidget(self.details_group)

        self.metadata_editor = MetadataEditor(self)
        self.metadata_editor.setEnabled(False)
        layout.addWidget(self.metadata_editor)

        button_row = QtWidgets.QHBoxLayout()
        button_row.addStretch(1)
        self.save_button = QtWidgets.QPushButton("Save Metadata")
        self.save_button.setEnabled(False)
        self.save_button.clicked.connect(self._on_save)
        button_row.addWidget(self.save_button)
        close_button = QtWidgets.QPushButton("Close")
        close_button.clicked.connect(self.reject)
        button_row.addWidget(close_button)
        layout.addLayout(button_row)

    def display_details(self, details: ObjectDetails) -> None:
        self.status_label.setText("Metadata loaded.")
        self.details_group.setVisible(True)
        self._detail_fields["Size"].setText(format_size(details.size))
        self._detail_fields["Last modified"].setText(format_last_modified(details.last_modified))
        self._detail_fields["Storage class"].setText(details.storage_class or "-")
        self._detail_fields["ETag"].setText(details.etag or "-")
        self._detail_fields["Content type"].setText(details.content_type or "-")
        self.metadata_editor.table.setRowCount(0)
        for key, value in metadata_rows(details.metadata):
            self.metadata_editor.add_row(key, value)
        if not details.metadata:
            self.status_label.setText("No metadata available for this file.")
        self.metadata_editor.setEnabled(True)
        self.save_button.setEnabled(True)

    def display_error(self, message: str) -> None:
        self.details_group.setVisible(False)
        self.status_label.setText(f"Error loading metadata: {message}")

    def _on_save(self) -> None:
        try:
            self.updated_metadata = self.metadata_editor.metadata()
        except InvalidInputError as exc:
            QtWidgets.QMessageBox.critical(self, "Error", str(exc))
            return
        self.accept()


class SettingsDialog(QtWidgets.QDialog):
    """Edit persistent application settings."""

    def __init__(self, parent: QtWidgets.QWidget, *, settings: AppSettings) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self._existing_settings = settings
        self.result_settings = settings

        layout = QtWidgets.QVBoxLayout(self)
        self.metadata_checkbox = QtWidgets.QCheckBox("Load object metadata with listings")
        self.metadata_checkbox.setChecked(settings.fetch_metadata)
        self.stale_checkbox = QtWidgets.QCheckBox("Ignore listings from superseded navigations")
        self.stale_checkbox.setChecked(settings.discard_stale_responses)
        self.markers_checkbox = QtWidgets.QCheckBox("Hide folder marker files")
        self.markers_checkbox.setChecked(settings.hide_folder_markers)
        self.remember_checkbox = QtWidgets.QCheckBox("Remember last connection and bucket")
        self.remember_checkbox.setChecked(settings.remember_last_bucket)
        for checkbox in (self.metadata_checkbox, self.stale_checkbox, self.markers_checkbox, self.remember_checkbox):
            layout.addWidget(checkbox)

        form = QtWidgets.QFormLayout()
        self.log_level_combo = QtWidgets.QComboBox()
        self.log_level_combo.addItems(list(LOG_LEVELS))
        self.log_level_combo.setCurrentText(settings.log_level)
        form.addRow("Log level:", self.log_level_combo)
        layout.addLayout(form)
        layout.addWidget(QtWidgets.QLabel("Metadata loading applies to new connections."))

        buttons = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._on_save)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _on_save(self) -> None:
        self.result_settings = AppSettings(
            fetch_metadata=self.metadata_checkbox.isChecked(),
            discard_stale_responses=self.stale_checkbox.isChecked(),
            hide_folder_markers=self.markers_checkbox.isChecked(),
            remember_last_bucket=self.remember_checkbox.isChecked(),
            last_connection=self._existing_settings.last_connection,
            last_bucket=self._existing_settings.last_bucket,
            log_level=self.log_level_combo.currentText(),
        )
        self.accept()


class AboutDialog(QtWidgets.QDialog):
    """Dialog displaying package metadata."""

    def __init__(self, parent: QtWidgets.QWidget, *, package_info: PackageInfo) -> None:
        super().__init__(parent)
        self.setWindowTitle("About")
        self.setModal(True)

        layout = QtWidgets.QVBoxLayout(self)
        title = QtWidgets.QLabel(f"{package_info.name} {package_info.version}".strip())
        title_font = title.font()
        title_font.setPointSize(14)
        title_font.setBold(True)
        title.setFont(title_font)
        title.setAlignment(QtCore.Qt.AlignCenter)
        layout.addWidget(title)

        summary = QtWidgets.QLabel(package_info.summary or "")
        summary.setAlignment(QtCore.Qt.AlignCenter)
        summary.setWordWrap(True)
        layout.addWidget(summary)

        for label, value in (
            ("Author", package_info.author),
            ("Homepage", package_info.homepage),
            ("Repository", package_info.repository),
        ):
            if value:
                line = QtWidgets.QLabel(f"{label}: {value}")
                line.setAlignment(QtCore.Qt.AlignCenter)
                layout.addWidget(line)

        close_button = QtWidgets.QPushButton("Close")
        close_button.clicked.connect(self.accept)
        layout.addWidget(close_button, alignment=QtCore.Qt.AlignCenter)

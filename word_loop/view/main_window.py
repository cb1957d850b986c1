from pathlib import Path
from typing import TYPE_CHECKING, Optional
import logging

from PyQt5 import QtCore, QtGui, QtWidgets

from ..model import AppSettings, ImportFormatError, PlaybackState, Segment, SettingsManager
from ..model.csv_format import video_reference
from ..model.settings import RATE_PRESETS, resolve_log_level
from .settings_dialog import SettingsDialog
from .video_widget import VideoContainer, frame_to_pixmap

if TYPE_CHECKING:  # pragma: no cover - for static analysis only
    from ..controller import WordLoopController


KEY_ROLE = QtCore.Qt.UserRole
DATASET_ROLE = QtCore.Qt.UserRole + 1

_LIST_STYLE = """
    QListWidget {
        background-color: #151515;
        border: 1px solid #242424;
        border-radius: 10px;
        padding: 6px;
    }
    QListWidget::item {
        color: #e0e0e0;
        padding: 6px;
    }
    QListWidget::item:selected {
        background-color: rgba(255, 255, 255, 0.12);
    }
"""


class WordLoopWindow(QtWidgets.QMainWindow):
    def __init__(self, controller: "WordLoopController") -> None:
        super().__init__()
        self.controller = controller
        self.controller.set_view(self)
        self.playback = self.controller.playback
        self._log = logging.getLogger(__name__)

        self.setWindowTitle("Word Loop")
        self.resize(1280, 780)
        self.setFocusPolicy(QtCore.Qt.StrongFocus)

        self._populating_markers = False
        self._build_ui()
        self._setup_connections()

        self.frame_timer = QtCore.QTimer(self)
        self.frame_timer.setTimerType(QtCore.Qt.PreciseTimer)
        self.frame_timer.timeout.connect(self._refresh_frame)

        self._apply_settings_to_ui()
        self._refresh_library()
        self._refresh_markers()
        self._on_state_changed(self.playback.state)

    # ------------------------------------------------------------------
    # Model-backed properties
    # ------------------------------------------------------------------
    @property
    def settings_manager(self) -> SettingsManager:
        return self.controller.settings_manager

    @property
    def settings(self) -> AppSettings:
        return self.controller.settings

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        central.setStyleSheet(
            """
            QWidget {
                background-color: #0b0b0b;
                color: #f0f0f0;
                font-size: 13px;
            }
            QLabel {
                color: #f0f0f0;
            }
            """
        )
        self.setCentralWidget(central)

        main_layout = QtWidgets.QVBoxLayout(central)
        main_layout.setContentsMargins(24, 24, 24, 24)
        main_layout.setSpacing(16)

        header_layout = QtWidgets.QHBoxLayout()
        header_layout.setSpacing(12)
        self.headline_label = QtWidgets.QLabel("Loop every unknown word until it sticks")
        self.headline_label.setStyleSheet("font-size: 16px; font-weight: 500; color: #dcdcdc;")
        header_layout.addWidget(self.headline_label)
        header_layout.addStretch(1)

        self.import_button = self._build_primary_button("Import", "background-color: #1f1f1f;")
        self.settings_button = self._build_primary_button("Settings", "background-color: #1f1f1f;")
        header_layout.addWidget(self.import_button)
        header_layout.addWidget(self.settings_button)
        main_layout.addLayout(header_layout)

        self.video_container = VideoContainer()
        center = QtWidgets.QWidget()
        center_layout = QtWidgets.QVBoxLayout(center)
        center_layout.setContentsMargins(0, 0, 0, 0)
        center_layout.setSpacing(12)
        center_layout.addWidget(self.video_container, stretch=1)
        center_layout.addWidget(self._build_playback_bar())

        self.library_panel = self._build_library_panel()
        self.library_panel.setMinimumWidth(220)
        self.marker_panel = self._build_marker_panel()
        self.marker_panel.setMinimumWidth(240)

        self.splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal)
        self.splitter.setChildrenCollapsible(False)
        self.splitter.addWidget(self.library_panel)
        self.splitter.addWidget(center)
        self.splitter.addWidget(self.marker_panel)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 3)
        self.splitter.setStretchFactor(2, 1)
        main_layout.addWidget(self.splitter, stretch=1)

    def _build_primary_button(self, text: str, base_style: str) -> QtWidgets.QPushButton:
        button = QtWidgets.QPushButton(text)
        button.setCursor(QtCore.Qt.PointingHandCursor)
        button.setStyleSheet(
            f"""
            QPushButton {{
                {base_style}
                color: #f8f8f8;
                border-radius: 16px;
                padding: 8px 18px;
                font-weight: 500;
                border: 1px solid #2f2f2f;
            }}
            QPushButton:hover {{
                background-color: #2b2b2b;
            }}
            QPushButton:disabled {{
                color: #777777;
                background-color: #161616;
                border-color: #202020;
            }}
            """
        )
        return button

    def _build_library_panel(self) -> QtWidgets.QFrame:
        panel = QtWidgets.QFrame()
        layout = QtWidgets.QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        title = QtWidgets.QLabel("Datasets")
        title.setStyleSheet("font-size: 15px; font-weight: 600;")
        layout.addWidget(title)

        self.dataset_list = QtWidgets.QListWidget()
        self.dataset_list.setStyleSheet(_LIST_STYLE)
        layout.addWidget(self.dataset_list, stretch=1)

        row = QtWidgets.QGridLayout()
        row.setSpacing(6)
        self.start_button = self._build_primary_button("Start", "background-color: #1f3a2a;")
        self.export_button = self._build_primary_button("Export", "background-color: #1f1f1f;")
        self.rename_button = self._build_primary_button("Rename", "background-color: #1f1f1f;")
        self.delete_button = self._build_primary_button("Delete", "background-color: #3a1f1f;")
        row.addWidget(self.start_button, 0, 0)
        row.addWidget(self.export_button, 0, 1)
        row.addWidget(self.rename_button, 1, 0)
        row.addWidget(self.delete_button, 1, 1)
        layout.addLayout(row)
        return panel

    def _build_marker_panel(self) -> QtWidgets.QFrame:
        panel = QtWidgets.QFrame()
        layout = QtWidgets.QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self.dataset_title = QtWidgets.QLabel("No dataset open")
        self.dataset_title.setStyleSheet("font-size: 15px; font-weight: 600;")
        layout.addWidget(self.dataset_title)

        self.count_label = QtWidgets.QLabel("Total 0 / Known 0")
        self.count_label.setStyleSheet("color: #b0b0b0;")
        layout.addWidget(self.count_label)

        self.marker_list = QtWidgets.QListWidget()
        self.marker_list.setStyleSheet(_LIST_STYLE)
        self.marker_list.setToolTip("Check a word once you know it; double-click to loop it")
        layout.addWidget(self.marker_list, stretch=1)

        window_row = QtWidgets.QHBoxLayout()
        window_row.addWidget(QtWidgets.QLabel("Window (s)"))
        window_row.addStretch(1)
        self.window_spin = QtWidgets.QDoubleSpinBox()
        self.window_spin.setRange(0.1, 60.0)
        self.window_spin.setSingleStep(0.1)
        self.window_spin.setDecimals(2)
        self.window_spin.setKeyboardTracking(False)
        window_row.addWidget(self.window_spin)
        layout.addLayout(window_row)

        self.include_known_check = QtWidgets.QCheckBox("Include known words")
        layout.addWidget(self.include_known_check)
        return panel

    def _build_playback_bar(self) -> QtWidgets.QFrame:
        bar = QtWidgets.QFrame()
        bar.setStyleSheet(
            """
            QFrame {
                background-color: #121212;
                border-radius: 14px;
            }
            QSpinBox, QComboBox {
                background-color: #1a1a1a;
                border: 1px solid #2f2f2f;
                border-radius: 8px;
                padding: 4px 8px;
            }
            """
        )
        layout = QtWidgets.QHBoxLayout(bar)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(10)

        self.previous_button = self._build_primary_button("Prev", "background-color: #1f1f1f;")
        self.play_button = self._build_primary_button("Play", "background-color: #1f3a2a;")
        self.next_button = self._build_primary_button("Next", "background-color: #1f1f1f;")
        self.stop_button = self._build_primary_button("Stop", "background-color: #1f1f1f;")
        for button in (self.previous_button, self.play_button, self.next_button, self.stop_button):
            layout.addWidget(button)

        layout.addSpacing(12)
        layout.addWidget(QtWidgets.QLabel("Loops"))
        self.loops_spin = QtWidgets.QSpinBox()
        self.loops_spin.setRange(1, 50)
        layout.addWidget(self.loops_spin)

        layout.addWidget(QtWidgets.QLabel("Speed"))
        self.rate_combo = QtWidgets.QComboBox()
        for rate in RATE_PRESETS:
            self.rate_combo.addItem(f"{rate:g}x", rate)
        layout.addWidget(self.rate_combo)

        self.auto_advance_check = QtWidgets.QCheckBox("Auto-advance")
        layout.addWidget(self.auto_advance_check)
        layout.addStretch(1)

        self.loop_label = QtWidgets.QLabel("")
        self.loop_label.setStyleSheet("color: #b0b0b0;")
        layout.addWidget(self.loop_label)
        self.state_label = QtWidgets.QLabel(PlaybackState.IDLE.value)
        self.state_label.setMinimumWidth(60)
        layout.addWidget(self.state_label)
        self.current_time_label = QtWidgets.QLabel("0:00")
        self.current_time_label.setMinimumWidth(48)
        layout.addWidget(self.current_time_label)
        return bar

    def _setup_connections(self) -> None:
        self.import_button.clicked.connect(self.import_dataset)
        self.settings_button.clicked.connect(self.open_settings)
        self.start_button.clicked.connect(self.start_selected_dataset)
        self.export_button.clicked.connect(self.export_selected_dataset)
        self.rename_button.clicked.connect(self.rename_selected_dataset)
        self.delete_button.clicked.connect(self.delete_selected_dataset)
        self.dataset_list.itemDoubleClicked.connect(lambda _item: self.start_selected_dataset())
        self.dataset_list.currentItemChanged.connect(lambda *_: self._update_library_buttons())

        self.video_container.request_load.connect(self.choose_video)
        self.marker_list.itemChanged.connect(self._on_marker_item_changed)
        self.marker_list.itemDoubleClicked.connect(self._on_marker_double_clicked)
        self.window_spin.valueChanged.connect(self._on_window_changed)
        self.include_known_check.toggled.connect(self.controller.set_include_known)

        self.previous_button.clicked.connect(self.controller.play_previous)
        self.play_button.clicked.connect(self.controller.play_selected)
        self.next_button.clicked.connect(self.controller.play_next)
        self.stop_button.clicked.connect(self.controller.stop)
        self.loops_spin.valueChanged.connect(self.controller.set_loops)
        self.rate_combo.currentIndexChanged.connect(self._on_rate_changed)
        self.auto_advance_check.toggled.connect(self.controller.set_auto_advance)

        self.playback.state_changed.connect(self._on_state_changed)
        self.playback.segment_changed.connect(self._on_segment_changed)
        self.playback.loop_progress.connect(self._on_loop_progress)

    def _apply_settings_to_ui(self) -> None:
        playback = self.settings.playback
        for widget in (self.loops_spin, self.rate_combo, self.auto_advance_check, self.window_spin):
            widget.blockSignals(True)
        self.loops_spin.setValue(playback.loops_per_segment)
        index = self.rate_combo.findData(playback.default_rate)
        if index < 0:
            self.rate_combo.addItem(f"{playback.default_rate:g}x", playback.default_rate)
            index = self.rate_combo.count() - 1
        self.rate_combo.setCurrentIndex(index)
        self.auto_advance_check.setChecked(playback.auto_advance)
        self.window_spin.setValue(self.controller.window_config().window_sec)
        for widget in (self.loops_spin, self.rate_combo, self.auto_advance_check, self.window_spin):
            widget.blockSignals(False)
        self.frame_timer_interval = max(10, int(playback.frame_refresh_ms))

    # ------------------------------------------------------------------
    # Dataset library
    # ------------------------------------------------------------------
    def _selected_dataset_id(self) -> Optional[str]:
        item = self.dataset_list.currentItem()
        if item is None:
            return None
        return item.data(DATASET_ROLE)

    def _refresh_library(self, select_id: Optional[str] = None) -> None:
        self.dataset_list.clear()
        for meta in self.controller.list_datasets():
            item = QtWidgets.QListWidgetItem(meta.name)
            item.setData(DATASET_ROLE, meta.id)
            item.setToolTip(meta.id)
            self.dataset_list.addItem(item)
            if meta.id == select_id:
                self.dataset_list.setCurrentItem(item)
        self._update_library_buttons()

    def _update_library_buttons(self) -> None:
        has_selection = self._selected_dataset_id() is not None
        for button in (self.start_button, self.export_button, self.rename_button, self.delete_button):
            button.setEnabled(has_selection)

    def import_dataset(self) -> None:
        dialog = QtWidgets.QFileDialog(self, "Import Word List")
        dialog.setFileMode(QtWidgets.QFileDialog.ExistingFile)
        dialog.setNameFilters(["Word Lists (*.csv *.txt *.tsv)", "All Files (*)"])
        if not dialog.exec_():
            return
        file_path = Path(dialog.selectedFiles()[0])
        try:
            dataset = self.controller.import_file(file_path)
        except ImportFormatError as exc:
            QtWidgets.QMessageBox.critical(self, "Error", f"Could not import {file_path.name}: {exc}")
            return
        except OSError as exc:
            QtWidgets.QMessageBox.critical(self, "Error", f"Failed to read {file_path.name}: {exc}")
            return
        self._refresh_library(select_id=dataset.id)

    def export_selected_dataset(self) -> None:
        dataset_id = self._selected_dataset_id()
        if dataset_id is None:
            return
        name = self.dataset_list.currentItem().text()
        file_path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export Word List", f"{name}.csv", "CSV Files (*.csv);;All Files (*)"
        )
        if not file_path:
            return
        try:
            exported = self.controller.export_file(dataset_id, Path(file_path))
        except OSError as exc:
            QtWidgets.QMessageBox.critical(self, "Error", f"Failed to export: {exc}")
            return
        if not exported:
            QtWidgets.QMessageBox.warning(self, "Warning", "Dataset could not be loaded for export.")

    def rename_selected_dataset(self) -> None:
        dataset_id = self._selected_dataset_id()
        if dataset_id is None:
            return
        current = self.dataset_list.currentItem().text()
        name, accepted = QtWidgets.QInputDialog.getText(self, "Rename Dataset", "Name:", text=current)
        if not accepted:
            return
        if self.controller.rename_dataset(dataset_id, name) is None:
            QtWidgets.QMessageBox.warning(self, "Warning", "Dataset no longer exists.")
        self._refresh_library(select_id=dataset_id)
        self._update_dataset_title()

    def delete_selected_dataset(self) -> None:
        dataset_id = self._selected_dataset_id()
        if dataset_id is None:
            return
        if self.settings.notify.confirm_delete:
            name = self.dataset_list.currentItem().text()
            answer = QtWidgets.QMessageBox.question(
                self,
                "Delete Dataset",
                f"Delete '{name}' and its progress?",
                QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No,
                QtWidgets.QMessageBox.No,
            )
            if answer != QtWidgets.QMessageBox.Yes:
                return
        self.controller.delete_dataset(dataset_id)
        self._refresh_library()
        self._refresh_markers()
        self._sync_video_surface()

    def start_selected_dataset(self) -> None:
        dataset_id = self._selected_dataset_id()
        if dataset_id is None:
            return
        dataset = self.controller.start_learning(dataset_id)
        if dataset is None:
            QtWidgets.QMessageBox.critical(self, "Error", "Failed to open dataset.")
            self._refresh_library()
            return
        try:
            self.controller.open_media()
        except ValueError:
            QtWidgets.QMessageBox.warning(self, "Warning", "Failed to open the dataset's video.")
        self._apply_settings_to_ui()
        self._refresh_markers()
        self._sync_video_surface()

    def choose_video(self) -> None:
        if self.controller.active_dataset is None:
            QtWidgets.QMessageBox.information(self, "Word Loop", "Start a dataset before choosing its video.")
            return
        dialog = QtWidgets.QFileDialog(self, "Select Video")
        dialog.setFileMode(QtWidgets.QFileDialog.ExistingFile)
        dialog.setNameFilters(["Videos (*.mp4 *.mov *.avi *.mkv *.webm)", "All Files (*)"])
        if not dialog.exec_():
            return
        try:
            self.controller.attach_video(Path(dialog.selectedFiles()[0]))
        except ValueError:
            QtWidgets.QMessageBox.critical(self, "Error", "Failed to open video.")
        self._sync_video_surface()

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------
    def _update_dataset_title(self) -> None:
        dataset = self.controller.active_dataset
        self.dataset_title.setText(dataset.name if dataset is not None else "No dataset open")

    def _refresh_markers(self) -> None:
        self._populating_markers = True
        try:
            self.marker_list.clear()
            active_key = self.playback.active_key
            for marker in self.controller.markers:
                item = QtWidgets.QListWidgetItem(
                    f"{self._format_timestamp(marker.t)}  {marker.display_label}"
                )
                item.setData(KEY_ROLE, marker.key)
                item.setFlags(item.flags() | QtCore.Qt.ItemIsUserCheckable)
                item.setCheckState(QtCore.Qt.Checked if marker.known else QtCore.Qt.Unchecked)
                self.marker_list.addItem(item)
                if active_key is not None and marker.key == active_key:
                    self.marker_list.setCurrentItem(item)
        finally:
            self._populating_markers = False
        self._update_dataset_title()
        self._update_counts()

    def _update_counts(self) -> None:
        self.count_label.setText(
            f"Total {self.controller.total_count()} / Known {self.controller.known_count()}"
        )

    def _on_marker_item_changed(self, item: QtWidgets.QListWidgetItem) -> None:
        if self._populating_markers:
            return
        key = item.data(KEY_ROLE)
        marker = self.controller.progress.find(key)
        checked = item.checkState() == QtCore.Qt.Checked
        if marker is None or marker.known == checked:
            return
        self.controller.toggle_known(key)
        self._update_counts()

    def _on_marker_double_clicked(self, item: QtWidgets.QListWidgetItem) -> None:
        key = item.data(KEY_ROLE)
        if not self.controller.play_marker(key):
            self._log.debug("WordLoopWindow: %s is not in the unknown sequence", key)
            self.statusBar().showMessage("Known words are skipped unless \"Include known words\" is on", 3000)

    def _on_window_changed(self, value: float) -> None:
        try:
            self.controller.set_window_sec(value)
        except ValueError as exc:
            QtWidgets.QMessageBox.warning(self, "Warning", str(exc))

    def _on_rate_changed(self, index: int) -> None:
        rate = self.rate_combo.itemData(index)
        if rate is None:
            return
        self.controller.set_rate(float(rate))

    # ------------------------------------------------------------------
    # Playback feedback
    # ------------------------------------------------------------------
    def _on_state_changed(self, state: PlaybackState) -> None:
        self.state_label.setText(state.value)
        color = {"Playing": "#7ddc9c", "Error": "#ff7b7b"}.get(state.value, "#b0b0b0")
        self.state_label.setStyleSheet(f"color: {color}; font-weight: 600;")
        if state is not PlaybackState.PLAYING:
            self.loop_label.setText("")
        if state is PlaybackState.ERROR:
            self.statusBar().showMessage("Playback stopped: the video position could not be read", 5000)

    def _on_segment_changed(self, segment: Optional[Segment]) -> None:
        if segment is None:
            self.marker_list.clearSelection()
            return
        for row in range(self.marker_list.count()):
            item = self.marker_list.item(row)
            if item.data(KEY_ROLE) == segment.key:
                self.marker_list.setCurrentItem(item)
                self.marker_list.scrollToItem(item)
                break
        self.statusBar().showMessage(f"Looping {segment.display_label}", 2000)

    def _on_loop_progress(self, completed: int, total: int) -> None:
        self.loop_label.setText(f"Loop {min(completed + 1, total)}/{total}")

    # ------------------------------------------------------------------
    # Video surface
    # ------------------------------------------------------------------
    def _sync_video_surface(self) -> None:
        player = self.controller.video_player
        if player is not None and player.is_loaded():
            self.frame_timer.start(self.frame_timer_interval)
            self._refresh_frame()
            return
        self.frame_timer.stop()
        dataset = self.controller.active_dataset
        reference = video_reference(dataset.video_id) if dataset is not None and dataset.video_id else ""
        self.video_container.show_placeholder(reference)
        self.current_time_label.setText("0:00")

    def _refresh_frame(self) -> None:
        player = self.controller.video_player
        if player is None or not player.is_loaded():
            return
        frame = player.read_frame()
        if frame is not None:
            self.video_container.set_frame(frame_to_pixmap(frame))
        position = self.playback.position()
        if position is not None:
            self.current_time_label.setText(self._format_timestamp(position))

    def _format_timestamp(self, seconds: float) -> str:
        total_seconds = max(0, int(seconds))
        minutes = total_seconds // 60
        secs = total_seconds % 60
        return f"{minutes}:{secs:02d}"

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def open_settings(self) -> None:
        dialog = SettingsDialog(self.settings_manager, self)
        dialog.settingsApplied.connect(self._on_settings_applied)
        dialog.exec_()

    def _on_settings_applied(self, settings: AppSettings) -> None:
        self.controller.apply_settings(settings)
        self._apply_settings_to_ui()
        if self.frame_timer.isActive():
            self.frame_timer.start(self.frame_timer_interval)
        logging.getLogger().setLevel(resolve_log_level(settings.notify.log_level))

    def keyPressEvent(self, event: QtGui.QKeyEvent) -> None:
        key = event.key()
        if key == QtCore.Qt.Key_Space:
            if self.playback.state is PlaybackState.PLAYING:
                self.controller.stop()
            else:
                self.controller.play_selected()
        elif key == QtCore.Qt.Key_Right:
            self.controller.play_next()
        elif key == QtCore.Qt.Key_Left:
            self.controller.play_previous()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.frame_timer.stop()
        self.controller.stop_learning()
        super().closeEvent(event)

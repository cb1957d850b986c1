from __future__ import annotations

from dataclasses import asdict

from PyQt5 import QtCore, QtWidgets

from ..model.entities import WindowConfig
from ..model.settings import (
    RATE_PRESETS,
    AppSettings,
    GeneralSettings,
    NotifySettings,
    PlaybackSettings,
    SettingsManager,
    WindowSettings,
)


class SettingsDialog(QtWidgets.QDialog):
    settingsApplied = QtCore.pyqtSignal(AppSettings)

    def __init__(self, manager: SettingsManager, parent: QtWidgets.QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self.setMinimumSize(560, 460)
        self.manager = manager
        self.settings = AppSettings(
            general=GeneralSettings(**asdict(manager.settings.general)),
            playback=PlaybackSettings(**asdict(manager.settings.playback)),
            window=WindowSettings(**asdict(manager.settings.window)),
            notify=NotifySettings(**asdict(manager.settings.notify)),
        )

        self._build_ui()
        self._populate_fields()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        self.setStyleSheet(
            """
            QDialog {
                background-color: #101010;
                color: #f0f0f0;
                border-radius: 10px;
            }
            QLabel {
                color: #f0f0f0;
                font-size: 12px;
            }
            QTabBar::tab {
                background: rgba(255,255,255,0.05);
                padding: 6px 14px;
                margin-right: 6px;
                border-radius: 16px;
                color: #bdbdbd;
            }
            QTabBar::tab:selected {
                background: rgba(255,255,255,0.16);
                color: #ffffff;
            }
            QSpinBox, QDoubleSpinBox, QLineEdit, QComboBox {
                background-color: #1a1a1a;
                border: 1px solid #2f2f2f;
                border-radius: 8px;
                padding: 4px 8px;
                color: #f0f0f0;
            }
            QPushButton {
                background-color: rgba(255,255,255,0.08);
                border-radius: 14px;
                padding: 6px 16px;
                color: #f0f0f0;
            }
            QPushButton.primary {
                background-color: #f8fafc;
                color: #0f172a;
            }
            """
        )

        outer_layout = QtWidgets.QVBoxLayout(self)
        outer_layout.setContentsMargins(24, 24, 24, 24)
        outer_layout.setSpacing(16)

        title_label = QtWidgets.QLabel("Settings")
        title_label.setStyleSheet("font-size: 20px; font-weight: 600; color: #ffffff;")
        outer_layout.addWidget(title_label)

        self.tabs = QtWidgets.QTabWidget()
        self.tabs.setDocumentMode(True)
        self.tabs.addTab(self._build_playback_tab(), "Playback")
        self.tabs.addTab(self._build_window_tab(), "Window")
        self.tabs.addTab(self._build_general_tab(), "General")
        outer_layout.addWidget(self.tabs)

        footer_layout = QtWidgets.QHBoxLayout()
        self.reset_button = QtWidgets.QPushButton("Reset to Defaults")
        footer_layout.addWidget(self.reset_button)
        footer_layout.addStretch(1)
        self.cancel_button = QtWidgets.QPushButton("Cancel")
        self.save_button = QtWidgets.QPushButton("Save Settings")
        self.save_button.setProperty("class", "primary")
        footer_layout.addWidget(self.cancel_button)
        footer_layout.addWidget(self.save_button)
        outer_layout.addLayout(footer_layout)

        self.reset_button.clicked.connect(self._reset_to_defaults)
        self.cancel_button.clicked.connect(self.reject)
        self.save_button.clicked.connect(self._apply_and_close)

    def _build_playback_tab(self) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(widget)
        layout.setSpacing(16)

        layout.addLayout(self._spin_row("Loops per Marker", "How many times each window repeats",
                                        "playback_loops", 1, 50))
        self.playback_auto_advance = QtWidgets.QCheckBox("Advance to the next unknown marker")
        layout.addWidget(self.playback_auto_advance)
        layout.addLayout(self._combo_row("Default Playback Speed", "", "playback_rate",
                                         [f"{rate:g}x" for rate in RATE_PRESETS]))
        layout.addLayout(self._spin_row("Missed Polls Before Error",
                                        "Consecutive unreadable positions tolerated",
                                        "playback_max_failures", 1, 1000))
        layout.addLayout(self._spin_row("Frame Refresh (ms)", "", "playback_frame_refresh", 10, 200))
        layout.addStretch(1)
        return widget

    def _build_window_tab(self) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(widget)
        layout.setSpacing(16)

        layout.addLayout(self._double_spin_row("Window Length (s)",
                                               "Length of the last marker's window in new datasets",
                                               "window_length", 0.1, 60.0, 0.1))
        layout.addLayout(self._double_spin_row("Minimum Window (s)", "", "window_min_segment", 0.0, 10.0, 0.05))
        layout.addLayout(self._double_spin_row("Gap Before Next Marker (s)", "", "window_gap", 0.0, 2.0, 0.01))
        layout.addLayout(self._double_spin_row("End Tolerance (s)", "", "window_end_tolerance", 0.0, 1.0, 0.01))
        layout.addLayout(self._spin_row("Poll Interval (ms)", "", "window_poll_interval", 10, 2000))
        layout.addStretch(1)
        return widget

    def _build_general_tab(self) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(widget)
        layout.setSpacing(16)

        layout.addLayout(self._line_edit_row("Dataset Folder", "Takes effect after restart", "general_data_dir"))
        layout.addLayout(self._line_edit_row("Default Dataset Name", "", "general_default_name"))
        layout.addLayout(self._combo_row("Log Level", "", "notify_log_level",
                                         ["Debug", "Info", "Warning", "Error"]))
        self.notify_confirm_delete = QtWidgets.QCheckBox("Confirm before deleting a dataset")
        layout.addWidget(self.notify_confirm_delete)
        layout.addStretch(1)
        return widget

    def _spin_row(
        self,
        label: str,
        description: str,
        attr_name: str,
        minimum: int,
        maximum: int,
    ) -> QtWidgets.QVBoxLayout:
        spin = QtWidgets.QSpinBox()
        spin.setRange(minimum, maximum)
        spin.setSingleStep(1)
        setattr(self, attr_name, spin)
        return self._labelled_row(label, description, spin)

    def _double_spin_row(
        self,
        label: str,
        description: str,
        attr_name: str,
        minimum: float,
        maximum: float,
        step: float,
    ) -> QtWidgets.QVBoxLayout:
        spin = QtWidgets.QDoubleSpinBox()
        spin.setRange(minimum, maximum)
        spin.setSingleStep(step)
        spin.setDecimals(2)
        setattr(self, attr_name, spin)
        return self._labelled_row(label, description, spin)

    def _combo_row(self, label: str, description: str, attr_name: str, options: list[str]) -> QtWidgets.QVBoxLayout:
        combo = QtWidgets.QComboBox()
        combo.addItems(options)
        setattr(self, attr_name, combo)
        return self._labelled_row(label, description, combo)

    def _line_edit_row(self, label: str, description: str, attr_name: str) -> QtWidgets.QVBoxLayout:
        line_edit = QtWidgets.QLineEdit()
        setattr(self, attr_name, line_edit)
        return self._labelled_row(label, description, line_edit)

    def _labelled_row(self, label: str, description: str, field: QtWidgets.QWidget) -> QtWidgets.QVBoxLayout:
        row = QtWidgets.QHBoxLayout()
        row.addWidget(QtWidgets.QLabel(label))
        row.addStretch(1)
        row.addWidget(field)

        container = QtWidgets.QVBoxLayout()
        container.addLayout(row)
        if description:
            desc = QtWidgets.QLabel(description)
            desc.setStyleSheet("color: #909090; font-size: 11px;")
            container.addWidget(desc)
        return container

    # ------------------------------------------------------------------
    # Populate fields
    # ------------------------------------------------------------------
    def _populate_fields(self) -> None:
        pb = self.settings.playback
        self.playback_loops.setValue(pb.loops_per_segment)
        self.playback_auto_advance.setChecked(pb.auto_advance)
        index = self.playback_rate.findText(f"{pb.default_rate:g}x")
        self.playback_rate.setCurrentIndex(max(0, index))
        self.playback_max_failures.setValue(pb.max_poll_failures)
        self.playback_frame_refresh.setValue(pb.frame_refresh_ms)

        w = self.settings.window
        self.window_length.setValue(w.window_sec)
        self.window_min_segment.setValue(w.min_segment_sec)
        self.window_gap.setValue(w.gap_epsilon)
        self.window_end_tolerance.setValue(w.end_tolerance)
        self.window_poll_interval.setValue(w.poll_interval_ms)

        g = self.settings.general
        self.general_data_dir.setText(g.data_dir)
        self.general_default_name.setText(g.default_dataset_name)
        nt = self.settings.notify
        index = self.notify_log_level.findText(nt.log_level)
        self.notify_log_level.setCurrentIndex(max(0, index))
        self.notify_confirm_delete.setChecked(nt.confirm_delete)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _reset_to_defaults(self) -> None:
        self.settings = AppSettings()
        self._populate_fields()

    def _apply_and_close(self) -> None:
        try:
            self._collect_values()
        except ValueError as exc:
            QtWidgets.QMessageBox.warning(self, "Invalid Settings", str(exc))
            return
        self.settingsApplied.emit(self.settings)
        self.accept()

    def _collect_values(self) -> None:
        pb = self.settings.playback
        pb.loops_per_segment = self.playback_loops.value()
        pb.auto_advance = self.playback_auto_advance.isChecked()
        pb.default_rate = float(self.playback_rate.currentText().rstrip("x"))
        pb.max_poll_failures = self.playback_max_failures.value()
        pb.frame_refresh_ms = self.playback_frame_refresh.value()

        w = self.settings.window
        w.window_sec = self.window_length.value()
        w.min_segment_sec = self.window_min_segment.value()
        w.gap_epsilon = self.window_gap.value()
        w.end_tolerance = self.window_end_tolerance.value()
        w.poll_interval_ms = self.window_poll_interval.value()
        WindowConfig(**asdict(w))

        g = self.settings.general
        g.data_dir = self.general_data_dir.text().strip() or GeneralSettings().data_dir
        g.default_dataset_name = self.general_default_name.text().strip() or GeneralSettings().default_dataset_name

        nt = self.settings.notify
        nt.log_level = self.notify_log_level.currentText()
        nt.confirm_delete = self.notify_confirm_delete.isChecked()

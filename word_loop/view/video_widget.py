from typing import Optional, Tuple

import cv2
import numpy as np
from PyQt5 import QtCore, QtGui, QtWidgets


def frame_to_pixmap(bgr_frame: np.ndarray) -> QtGui.QPixmap:
    rgb_frame = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
    height, width, _ = rgb_frame.shape
    image = QtGui.QImage(rgb_frame.data, width, height, 3 * width, QtGui.QImage.Format_RGB888)
    # QImage borrows the numpy buffer; copy before it goes out of scope.
    return QtGui.QPixmap.fromImage(image.copy())


class VideoCanvas(QtWidgets.QWidget):
    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setAttribute(QtCore.Qt.WA_OpaquePaintEvent, True)
        self._pixmap: Optional[QtGui.QPixmap] = None
        self.setMinimumSize(320, 180)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def set_frame(self, pixmap: QtGui.QPixmap) -> None:
        self._pixmap = pixmap
        self.update()

    def clear(self) -> None:
        self._pixmap = None
        self.update()

    def has_frame(self) -> bool:
        return self._pixmap is not None

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:
        painter = QtGui.QPainter(self)
        painter.fillRect(self.rect(), QtGui.QColor("#000000"))
        if not self._pixmap:
            return

        scaled_pixmap = self._pixmap.scaled(
            self.size(), QtCore.Qt.KeepAspectRatio, QtCore.Qt.SmoothTransformation
        )
        left, top = self._content_origin(scaled_pixmap.size())
        painter.drawPixmap(QtCore.QPointF(left, top), scaled_pixmap)

    def _content_origin(self, scaled_size: QtCore.QSize) -> Tuple[float, float]:
        left = (self.width() - scaled_size.width()) / 2
        top = (self.height() - scaled_size.height()) / 2
        return left, top


class VideoPlaceholder(QtWidgets.QWidget):
    request_load = QtCore.pyqtSignal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setAttribute(QtCore.Qt.WA_StyledBackground, True)
        self.setStyleSheet(
            """
            background-color: #111111;
            border: 1px dashed #2f2f2f;
            border-radius: 16px;
            """
        )

        outer_layout = QtWidgets.QVBoxLayout(self)
        outer_layout.setContentsMargins(24, 24, 24, 32)
        outer_layout.setSpacing(12)

        center_container = QtWidgets.QWidget()
        center_layout = QtWidgets.QVBoxLayout(center_container)
        center_layout.setAlignment(QtCore.Qt.AlignCenter)
        center_layout.setSpacing(12)

        self.title = QtWidgets.QLabel("No video attached")
        self.title.setAlignment(QtCore.Qt.AlignCenter)
        self.title.setStyleSheet("color: #f0f0f0; font-size: 18px; font-weight: 500;")
        center_layout.addWidget(self.title)

        self.subtitle = QtWidgets.QLabel("Choose a local copy of this dataset's video to start looping")
        self.subtitle.setAlignment(QtCore.Qt.AlignCenter)
        self.subtitle.setWordWrap(True)
        self.subtitle.setStyleSheet("color: #b0b0b0; font-size: 13px;")
        center_layout.addWidget(self.subtitle)

        load_button = QtWidgets.QPushButton("Choose Video File")
        load_button.setFixedWidth(180)
        load_button.setCursor(QtCore.Qt.PointingHandCursor)
        load_button.setStyleSheet(
            """
            QPushButton {
                color: #0f0f0f;
                background-color: #f4f4f4;
                border-radius: 18px;
                padding: 10px 24px;
                font-size: 14px;
                font-weight: 600;
            }
            QPushButton:hover {
                background-color: #ffffff;
            }
            """
        )
        load_button.clicked.connect(self.request_load)
        center_layout.addWidget(load_button, alignment=QtCore.Qt.AlignCenter)

        outer_layout.addStretch(1)
        outer_layout.addWidget(center_container, alignment=QtCore.Qt.AlignCenter)
        outer_layout.addStretch(2)

    def set_video_reference(self, reference: str) -> None:
        if reference:
            self.subtitle.setText(f"Choose a local copy of {reference} to start looping")
        else:
            self.subtitle.setText("Choose a local copy of this dataset's video to start looping")


class VideoContainer(QtWidgets.QWidget):
    request_load = QtCore.pyqtSignal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setAttribute(QtCore.Qt.WA_StyledBackground, True)
        self.setStyleSheet(
            """
            background-color: #101010;
            border: 1px solid #2f2f2f;
            border-radius: 16px;
            """
        )

        self.placeholder = VideoPlaceholder()
        self.canvas = VideoCanvas()
        self.canvas.setStyleSheet("background-color: #000000; border-radius: 12px;")

        self.stack = QtWidgets.QStackedLayout()
        self.stack.setContentsMargins(8, 8, 8, 8)
        self.stack.addWidget(self.placeholder)
        self.stack.addWidget(self.canvas)
        self.setLayout(self.stack)

        self.placeholder.request_load.connect(self.request_load)
        self.show_placeholder()

    def show_placeholder(self, reference: str = "") -> None:
        self.placeholder.set_video_reference(reference)
        self.stack.setCurrentWidget(self.placeholder)
        self.canvas.clear()

    def show_video(self) -> None:
        self.stack.setCurrentWidget(self.canvas)

    def set_frame(self, pixmap: QtGui.QPixmap) -> None:
        self.canvas.set_frame(pixmap)
        self.show_video()

"""
Icon Loader: Qt bridge for progressive icon delivery.

QtIconSink turns pipeline pushes into Qt signals so a GUI can apply icon
batches on its own thread. IconLoaderWorker runs the icon pass off the GUI
thread, wired to a QtIconSink.
"""

from typing import List

from PySide6.QtCore import QObject, QThread, Signal

from launchpad.app_metadata import IconUpdate


class QtIconSink(QObject):
    """Progress sink that re-emits pushes as Qt signals."""

    icons_loaded = Signal(object)   # list of IconUpdate
    icons_complete = Signal()

    def push_batch(self, updates: List[IconUpdate]) -> None:
        self.icons_loaded.emit(list(updates))

    def push_complete(self) -> None:
        self.icons_complete.emit()


class IconLoaderWorker(QThread):
    """Worker thread that runs DiscoveryPipeline.load_app_icons."""

    icons_loaded = Signal(object)
    icons_complete = Signal()
    load_failed = Signal(str)  # error message

    def __init__(self, pipeline, parent=None):
        super().__init__(parent)
        self._pipeline = pipeline
        self.sink = QtIconSink()
        self.sink.icons_loaded.connect(self.icons_loaded)
        self.sink.icons_complete.connect(self.icons_complete)

    def run(self):
        """Run the progressive icon pass."""
        try:
            self._pipeline.load_app_icons(self.sink)
        except Exception as exc:
            self.load_failed.emit(str(exc))

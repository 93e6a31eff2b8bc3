import sys
import os

from PyQt5.QtWidgets import (
    QApplication, QWidget, QLabel, QPushButton, QLineEdit, QFileDialog,
    QVBoxLayout, QHBoxLayout, QCheckBox, QProgressBar, QTextEdit
)
from PyQt5.QtCore import QThread, pyqtSignal

from rename_images_with_date import OutcomeKind, rename_images_by_date

# ------------------------ PyQt GUI ------------------------ #

class WorkerThread(QThread):
    progress_signal = pyqtSignal(int, str)
    finished_signal = pyqtSignal(dict)

    def __init__(self, image_dir, recursive, dry_run):
        super().__init__()
        self.image_dir = image_dir
        self.recursive = recursive
        self.dry_run = dry_run

    def run(self):
        def progress_callback(done, total, filename, percent):
            self.progress_signal.emit(percent, filename)

        result = rename_images_by_date(
            directory=self.image_dir,
            dry_run=self.dry_run,
            recursive=self.recursive,
            progress_callback=progress_callback
        )
        self.finished_signal.emit(result)

class DateRenamerGUI(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Rename Photos by Date")
        self.setGeometry(200, 200, 600, 400)
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout()

        self.src_label = QLabel("Photo Directory:")
        self.src_input = QLineEdit()
        self.src_btn = QPushButton("Browse")
        self.src_btn.clicked.connect(self.browse_src)
        src_layout = QHBoxLayout()
        src_layout.addWidget(self.src_input)
        src_layout.addWidget(self.src_btn)

        self.recursive_cb = QCheckBox("Search Subdirectories (moves files into this directory)")
        self.dry_run_cb = QCheckBox("Dry Run (only show what would be renamed)")
        self.dry_run_cb.setChecked(True)

        self.start_btn = QPushButton("Start Renaming")
        self.start_btn.clicked.connect(self.start_renaming)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.log_output = QTextEdit()
        self.log_output.setReadOnly(True)

        layout.addWidget(self.src_label)
        layout.addLayout(src_layout)
        layout.addWidget(self.recursive_cb)
        layout.addWidget(self.dry_run_cb)
        layout.addWidget(self.start_btn)
        layout.addWidget(self.progress_bar)
        layout.addWidget(self.log_output)

        self.setLayout(layout)

    def browse_src(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Photo Directory")
        if folder:
            self.src_input.setText(folder)

    def start_renaming(self):
        image_dir = self.src_input.text()
        if not image_dir or not os.path.isdir(image_dir):
            self.log_output.append("Please select a valid photo directory.")
            return

        self.start_btn.setEnabled(False)
        self.progress_bar.setValue(0)
        self.log_output.append("Starting dry run..." if self.dry_run_cb.isChecked() else "Starting renaming...")

        self.worker = WorkerThread(image_dir, self.recursive_cb.isChecked(), self.dry_run_cb.isChecked())
        self.worker.progress_signal.connect(self.update_progress)
        self.worker.finished_signal.connect(self.renaming_finished)
        self.worker.start()

    def update_progress(self, percent, filename):
        self.progress_bar.setValue(percent)
        self.log_output.append(f"[{percent}%] Checked: {filename}")
        self.log_output.verticalScrollBar().setValue(self.log_output.verticalScrollBar().maximum())

    def renaming_finished(self, result):
        self.start_btn.setEnabled(True)
        self.progress_bar.setValue(100)
        self.log_output.append("Renaming finished.")
        self.log_output.append(f"Status: {result.get('status')}")
        self.log_output.append(result.get("message", ""))
        for outcome in result.get("outcomes", []):
            if outcome.kind not in (OutcomeKind.APPLIED, OutcomeKind.WOULD_APPLY):
                self.log_output.append(outcome.describe())
        if result.get("files_failed"):
            self.log_output.append(f"Files failed: {result.get('files_failed')}")
        self.log_output.verticalScrollBar().setValue(self.log_output.verticalScrollBar().maximum())

# ------------------------ Main ------------------------ #

def main():
    app = QApplication(sys.argv)
    gui = DateRenamerGUI()
    gui.show()
    return app.exec_()

if __name__ == "__main__":
    sys.exit(main())

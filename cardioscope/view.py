import logging
from PySide6.QtWidgets import (
    QMainWindow,
    QPushButton,
    QHBoxLayout,
    QVBoxLayout,
    QWidget,
    QLabel,
    QComboBox,
    QGroupBox,
    QFormLayout,
    QFileDialog,
    QProgressBar,
    QListWidget,
)
from PySide6.QtCore import Qt, QMargins, QPointF
from PySide6.QtGui import QColor
from PySide6.QtCharts import QChartView, QChart, QLineSeries, QValueAxis
from cardioscope.analysis import rhythm_category, risk_band
from cardioscope.scheduler import PlaybackStatus
from cardioscope.config import WINDOW_SIZE, INFERENCE_MODELS

logger = logging.getLogger(__name__)

CYAN = QColor(34, 211, 238)

CATEGORY_COLORS = {
    "normal": "#34d399",
    "warning": "#fbbf24",
    "critical": "#f43f5e",
    "info": "#60a5fa",
    "complete": "#2dd4bf",
    "muted": "#94a3b8",
}
RISK_COLORS = {
    "none": "#334155",
    "normal": "#10b981",
    "warning": "#fbbf24",
    "critical": "#f43f5e",
}


class EcgWidget(QChartView):
    """Sweep of the most recent WINDOW_SIZE samples."""

    def __init__(self, line_color=CYAN):
        super().__init__()

        self.plot = QChart()
        self.plot.legend().setVisible(False)
        self.plot.setBackgroundRoundness(0)
        self.plot.setMargins(QMargins(0, 0, 0, 0))

        self.time_series = QLineSeries()
        self.plot.addSeries(self.time_series)
        pen = self.time_series.pen()
        pen.setWidth(2)
        pen.setColor(line_color)
        self.time_series.setPen(pen)

        self.x_axis = QValueAxis()
        self.x_axis.setRange(0, WINDOW_SIZE)
        self.x_axis.setVisible(False)
        self.plot.addAxis(self.x_axis, Qt.AlignBottom)
        self.time_series.attachAxis(self.x_axis)

        self.y_axis = QValueAxis()
        self.y_axis.setRange(-1, 2)
        self.y_axis.setTitleText("mV")
        self.plot.addAxis(self.y_axis, Qt.AlignLeft)
        self.time_series.attachAxis(self.y_axis)

        self.setChart(self.plot)

    def update_series(self, y_values):
        # QLineSeries.replace with a point list is much cheaper than
        # replacing points one by one at 60Hz.
        self.time_series.replace(
            [QPointF(x, float(y)) for x, y in enumerate(y_values)]
        )


class View(QMainWindow):
    def __init__(self, model):
        super().__init__()

        self.setWindowTitle("CardioScope")

        self.model = model
        self.scheduler = model.scheduler
        self.scheduler.window_update.connect(self.plot_window)
        self.scheduler.progress_update.connect(self.show_progress)
        self.scheduler.readout_update.connect(self.show_readout)
        self.scheduler.status_update.connect(self.show_playback_status)
        self.model.alerts.alerts_update.connect(self.list_alerts)
        self.model.recording_update.connect(self.show_recording)
        self.model.inference_model_update.connect(self.show_intervals)

        self.ecg_widget = EcgWidget()

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setTextVisible(False)

        self.open_button = QPushButton("Upload")
        self.open_button.clicked.connect(self.get_filepath)

        self.play_button = QPushButton("Play")
        self.play_button.clicked.connect(self.model.toggle_play)

        self.report_button = QPushButton("Report")
        self.report_button.setEnabled(False)
        self.report_button.clicked.connect(self.show_report)

        self.model_menu = QComboBox()
        self.model_menu.addItems(list(INFERENCE_MODELS))
        self.model_menu.currentTextChanged.connect(self.model.select_inference_model)

        self.rhythm_label = QLabel()
        self.heart_rate_label = QLabel()
        self.risk_label = QLabel()
        self.confidence_label = QLabel()
        self.status_label = QLabel(self.model.status_text())
        self.intervals_label = QLabel("QT -- ms, PR -- ms, QRS -- ms")
        self.explanation_label = QLabel()
        self.explanation_label.setWordWrap(True)

        self.alert_list = QListWidget()
        self.alert_list.setMaximumHeight(80)

        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.statusbar = self.statusBar()

        self.vlayout0 = QVBoxLayout(self.central_widget)
        self.vlayout0.addWidget(self.progress)
        self.vlayout0.addWidget(self.ecg_widget, stretch=60)
        self.vlayout0.addWidget(self.alert_list)

        self.hlayout0 = QHBoxLayout()

        self.controls = QHBoxLayout()
        self.controls.addWidget(self.open_button)
        self.controls.addWidget(self.play_button)
        self.controls.addWidget(self.report_button)
        self.controls_panel = QGroupBox("Recording")
        self.controls_panel.setLayout(self.controls)
        self.hlayout0.addWidget(self.controls_panel, stretch=25)

        self.analysis_config = QFormLayout()
        self.analysis_config.addRow("Status", self.status_label)
        self.analysis_config.addRow("Rhythm", self.rhythm_label)
        self.analysis_config.addRow("Heart rate", self.heart_rate_label)
        self.analysis_config.addRow("Risk", self.risk_label)
        self.analysis_config.addRow("Confidence", self.confidence_label)
        self.analysis_panel = QGroupBox("Analysis")
        self.analysis_panel.setLayout(self.analysis_config)
        self.hlayout0.addWidget(self.analysis_panel, stretch=40)

        self.model_config = QVBoxLayout()
        self.model_config.addWidget(self.model_menu)
        self.model_config.addWidget(self.intervals_label)
        self.model_panel = QGroupBox("Inference Model")
        self.model_panel.setLayout(self.model_config)
        self.hlayout0.addWidget(self.model_panel, stretch=35)

        self.vlayout0.addLayout(self.hlayout0)
        self.vlayout0.addWidget(self.explanation_label)

        self.show_readout(None)

    def closeEvent(self, event):
        self.scheduler.reset()
        return super().closeEvent(event)

    def get_filepath(self):
        file_path = QFileDialog.getOpenFileName(
            None,
            "Upload ECG recording",
            "",
            "CSV files (*.csv);;All files (*)",
            options=QFileDialog.DontUseNativeDialog,
        )[0]
        if not file_path:  # user cancelled or closed file dialog
            return
        self.model.load_file(file_path)

    def plot_window(self, window):
        self.ecg_widget.update_series(window.value)

    def show_progress(self, progress):
        self.progress.setValue(round(progress.value))

    def show_readout(self, _):
        readout = self.scheduler.readout
        color = CATEGORY_COLORS[rhythm_category(readout.rhythm)]
        self.rhythm_label.setText(readout.rhythm)
        self.rhythm_label.setStyleSheet(f"color: {color}; font-weight: bold")
        self.heart_rate_label.setText(f"{round(readout.heart_rate)} BPM")
        self.risk_label.setText(f"{round(readout.risk)}%")
        self.risk_label.setStyleSheet(f"color: {RISK_COLORS[risk_band(readout.risk)]}")
        self.confidence_label.setText(f"{round(readout.confidence)}%")
        self.explanation_label.setText(readout.explanation)

    def show_playback_status(self, status):
        self.status_label.setText(self.model.status_text())
        if status.value == PlaybackStatus.PLAYING:
            self.play_button.setText("Pause")
        elif status.value == PlaybackStatus.COMPLETED:
            self.play_button.setText("Replay")
        else:
            self.play_button.setText("Play")

    def show_recording(self, recording):
        self.report_button.setEnabled(True)
        self.show_intervals(None)
        self.show_status(f"Loaded {recording.value}.")

    def show_intervals(self, _):
        intervals = self.model.interval_estimates()
        if intervals is None:
            return
        self.intervals_label.setText(
            f"QT {intervals['qt']} ms, PR {intervals['pr']} ms, QRS {intervals['qrs']} ms"
        )

    def list_alerts(self, alerts):
        self.alert_list.clear()
        self.alert_list.addItems(
            [f"[{a.severity.value.upper()}] {a.message}" for a in alerts.value]
        )

    def show_report(self):
        snapshot = self.model.report_snapshot()
        if snapshot is None:
            return
        self.show_status(
            f"{snapshot.model_id}: {snapshot.rhythm}, {round(snapshot.heart_rate)} BPM,"
            f" risk {snapshot.risk}%, confidence {round(snapshot.confidence)}%"
        )

    def show_status(self, status):
        self.statusbar.showMessage(status, 0)
        logger.info(status)

"""Tests for the monitoring session: upload, playback toggle and reporting."""

import numpy as np
import pytest

from cardioscope.alerts import Severity
from cardioscope.analysis import ASYSTOLE, NORMAL_SINUS, TACHYCARDIA
from cardioscope.model import (
    INVALID_SOURCE,
    NO_REPORT_DATA,
    UNREADABLE_FILE,
    UPLOAD_REQUIRED,
    Model,
    ReportSnapshot,
)
from cardioscope.scheduler import PlaybackStatus
from conftest import regular_ecg


def as_csv(samples):
    return "\n".join(f"{s},0" for s in samples)


@pytest.fixture
def model(alerts, scheduler):
    return Model(alerts=alerts, scheduler=scheduler)


@pytest.fixture
def normal_csv():
    samples, _ = regular_ecg(150)
    return as_csv(samples)


def severity_of(alerts, message):
    return next(a.severity for a in alerts.active if a.message == message)


class TestUpload:
    def test_rejects_unknown_source(self, model, alerts, normal_csv):
        assert not model.load_text("holter.csv", normal_csv)
        assert not model.loaded
        assert model.analysis is None
        assert not model.scheduler.loaded
        assert model.scheduler.state.status == PlaybackStatus.IDLE
        assert severity_of(alerts, INVALID_SOURCE) == Severity.CRITICAL

    def test_rejected_upload_keeps_previous_recording(self, model, normal_csv):
        model.load_text("mitbih_100.csv", normal_csv)
        analysis = model.analysis
        assert not model.load_text("other.csv", "1\n2\n")
        assert model.file_name == "mitbih_100.csv"
        assert model.analysis is analysis

    def test_loads_and_starts_playing(self, model, normal_csv):
        assert model.load_text("MITBIH_100.csv", normal_csv)
        assert model.loaded
        assert model.analysis.rhythm == NORMAL_SINUS
        assert model.scheduler.state.status == PlaybackStatus.PLAYING
        assert model.scheduler.readout.confidence == 99.5
        assert model.scheduler.samples.size == 1450

    def test_analysis_alert_severity(self, model, alerts):
        samples, _ = regular_ecg(100)
        model.load_text("physionet_a01.csv", as_csv(samples))
        assert model.analysis.rhythm == TACHYCARDIA
        assert severity_of(alerts, "Tachycardia Detected") == Severity.WARNING

    def test_flat_recording_raises_critical_alert(self, model, alerts):
        model.load_text("mit_flat.csv", as_csv(np.zeros(500)))
        assert model.analysis.rhythm == ASYSTOLE
        assert severity_of(alerts, "Asystole Warning") == Severity.CRITICAL

    def test_normal_recording_raises_no_alert(self, model, alerts, normal_csv):
        model.load_text("mit.csv", normal_csv)
        assert len(alerts) == 0

    def test_recording_signal(self, model, normal_csv):
        recordings = []
        model.recording_update.connect(lambda r: recordings.append(r.value))
        model.load_text("mit.csv", normal_csv)
        assert recordings == ["mit.csv"]

    def test_load_file(self, model, tmp_path, normal_csv):
        path = tmp_path / "physionet_a01.csv"
        path.write_text("value\n" + normal_csv)
        assert model.load_file(path)
        assert model.file_name == "physionet_a01.csv"
        assert model.analysis.rhythm == NORMAL_SINUS

    def test_load_file_checks_name_before_reading(self, model, alerts, tmp_path):
        assert not model.load_file(tmp_path / "missing.csv")
        assert INVALID_SOURCE in alerts

    def test_unreadable_file(self, model, alerts, tmp_path):
        assert not model.load_file(tmp_path / "mit_missing.csv")
        assert not model.loaded
        assert UNREADABLE_FILE in alerts


class TestTogglePlay:
    def test_requires_upload(self, model, alerts):
        model.toggle_play()
        assert severity_of(alerts, UPLOAD_REQUIRED) == Severity.CRITICAL
        assert model.scheduler.state.status == PlaybackStatus.IDLE
        model.toggle_play()
        assert len(alerts) == 1

    def test_pause_and_resume(self, model, normal_csv):
        model.load_text("mit.csv", normal_csv)
        model.toggle_play()
        assert model.scheduler.state.status == PlaybackStatus.PAUSED
        assert model.status_text() == "Paused"
        model.toggle_play()
        assert model.scheduler.state.status == PlaybackStatus.PLAYING
        assert model.status_text() == "Live Processing"

    def test_replays_after_completion(self, model):
        model.load_text("mit.csv", as_csv(np.arange(8.0)))
        for _ in range(3):
            model.scheduler.tick()
        assert model.status_text() == "Analysis Complete"
        model.toggle_play()
        assert model.scheduler.state.status == PlaybackStatus.PLAYING
        assert model.scheduler.state.cursor == 0
        assert model.scheduler.state.progress == 0

    def test_status_without_recording(self, model):
        assert model.status_text() == "System Paused"


class TestInferenceModel:
    def test_default(self, model):
        assert model.inference_model == "mit-bih"

    def test_interval_estimates(self, model, normal_csv):
        assert model.interval_estimates() is None
        model.load_text("mit.csv", normal_csv)
        assert model.interval_estimates() == {"qt": 420, "pr": 160, "qrs": 90}
        model.select_inference_model("ptb")
        assert model.interval_estimates() == {"qt": 460, "pr": 160, "qrs": 110}

    def test_unknown_model(self, model):
        with pytest.raises(ValueError):
            model.select_inference_model("cinc-2020")
        assert model.inference_model == "mit-bih"


class TestReport:
    def test_requires_recording(self, model, alerts):
        assert model.report_snapshot() is None
        assert severity_of(alerts, NO_REPORT_DATA) == Severity.WARNING

    def test_snapshot_matches_readout(self, model, normal_csv):
        model.load_text("mit.csv", normal_csv)
        model.select_inference_model("physionet")
        for _ in range(30):
            model.scheduler.tick()
        snapshot = model.report_snapshot()
        readout = model.scheduler.readout
        assert isinstance(snapshot, ReportSnapshot)
        assert snapshot == ReportSnapshot(
            readout.heart_rate,
            readout.risk,
            readout.rhythm,
            readout.confidence,
            readout.explanation,
            "physionet",
        )

    def test_snapshot_is_detached_from_playback(self, model, normal_csv):
        model.load_text("mit.csv", normal_csv)
        snapshot = model.report_snapshot()
        for _ in range(400):
            model.scheduler.tick()
        assert snapshot.rhythm == NORMAL_SINUS
        assert model.report_snapshot().rhythm == "Analysis Complete"

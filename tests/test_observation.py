"""
Tests for observation layer.
"""

import time
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from observation import (
    InputKind,
    LiveSource,
    LiveSourceConfig,
    ObservationConfig,
    UploadConfig,
    UploadImageSource,
    UploadVideoSource,
    create_upload_source,
)
from models.frame import FrameData


def _mock_capture(reads, width=640, height=480, opened=True):
    """Build a stand-in for cv2.VideoCapture."""
    cap = MagicMock()
    cap.isOpened.return_value = opened
    sizes = {cv2.CAP_PROP_FRAME_WIDTH: width, cv2.CAP_PROP_FRAME_HEIGHT: height}
    cap.get.side_effect = lambda prop: sizes.get(prop, 0)
    cap.read.side_effect = reads
    return cap


def _frame(value=0, w=640, h=480):
    return np.full((h, w, 3), value, dtype=np.uint8)


class TestObservationConfig:
    def test_default_config(self):
        config = ObservationConfig()
        assert config.source_id == "default"
        assert config.metadata == {}

    def test_live_config_from_dict(self):
        config = LiveSourceConfig.from_dict({"device_id": "rtsp://192.168.1.100/stream"})

        assert config.source_id == "live"
        assert config.device_id == "rtsp://192.168.1.100/stream"
        assert config.buffer_size == 1
        assert config.max_retries == 3
        assert config.max_read_failures == 3

    def test_live_config_reads_failure_limits(self):
        config = LiveSourceConfig.from_dict({"device_id": 1, "max_retries": 5, "max_read_failures": 7})

        assert config.max_retries == 5
        assert config.max_read_failures == 7


class TestUploadImageSource:
    def test_lifecycle_with_array(self):
        image = _frame(7, w=320, h=200)
        source = UploadImageSource(UploadConfig(source_id="photo"), image=image)

        assert source.kind is InputKind.IMAGE
        assert not source.is_ready()
        assert source.capture() is None

        source.open()

        assert source.is_ready()
        assert source.natural_size() == (320, 200)
        fd = source.capture()
        assert isinstance(fd, FrameData)
        assert fd.size == (320, 200)
        assert fd.source == "photo"
        assert fd.frame_index == 1

        source.close()
        assert not source.is_ready()
        assert source.natural_size() is None

    def test_same_frame_every_capture(self):
        image = _frame(3)
        with UploadImageSource(UploadConfig(), image=image) as source:
            first = source.capture()
            second = source.capture()

        assert np.array_equal(first.frame, second.frame)
        assert second.frame_index == 2
        assert not source.is_open

    def test_unreadable_file_raises(self, tmp_path):
        source = UploadImageSource(UploadConfig(path=str(tmp_path / "missing.png")))

        with pytest.raises(RuntimeError, match="Failed to read"):
            source.open()

    def test_reads_file_from_disk(self, tmp_path):
        path = tmp_path / "frame.png"
        cv2.imwrite(str(path), _frame(9, w=64, h=48))

        with create_upload_source(str(path)) as source:
            assert isinstance(source, UploadImageSource)
            assert source.natural_size() == (64, 48)


class TestUploadVideoSource:
    def test_factory_picks_video_by_extension(self):
        assert isinstance(create_upload_source("clip.MP4"), UploadVideoSource)
        assert isinstance(create_upload_source("clip.webm"), UploadVideoSource)
        assert isinstance(create_upload_source("photo.jpg"), UploadImageSource)

    def test_loops_at_end_of_file(self):
        cap = _mock_capture([(True, _frame(1)), (False, None), (True, _frame(0))])
        with patch("observation.upload.cv2.VideoCapture", return_value=cap):
            source = UploadVideoSource(UploadConfig(path="clip.mp4"))
            source.open()

            first = source.capture()
            second = source.capture()

        assert source.kind is InputKind.VIDEO
        assert first.frame[0, 0, 0] == 1
        assert second.frame[0, 0, 0] == 0
        cap.set.assert_any_call(cv2.CAP_PROP_POS_FRAMES, 0)

    def test_paused_video_not_ready(self):
        cap = _mock_capture([(True, _frame())])
        with patch("observation.upload.cv2.VideoCapture", return_value=cap):
            source = UploadVideoSource(UploadConfig(path="clip.mp4", autoplay=False))
            source.open()

            assert not source.is_playing
            assert not source.is_ready()
            assert source.capture() is None

            source.play()
            assert source.is_ready()
            assert source.capture() is not None

            source.pause()
            assert not source.is_ready()

    def test_open_failure_raises(self):
        cap = _mock_capture([], opened=False)
        with patch("observation.upload.cv2.VideoCapture", return_value=cap):
            source = UploadVideoSource(UploadConfig(path="broken.mp4"))
            with pytest.raises(RuntimeError):
                source.open()
        cap.release.assert_called_once()

    def test_close_releases_capture(self):
        cap = _mock_capture([])
        with patch("observation.upload.cv2.VideoCapture", return_value=cap):
            source = UploadVideoSource(UploadConfig(path="clip.mp4"))
            source.open()
            source.close()

        cap.release.assert_called_once()
        assert not source.is_open
        assert not source.is_playing


class TestLiveSource:
    def test_ready_once_size_known(self):
        cap = _mock_capture([(True, _frame(w=1280, h=720))], width=1280, height=720)
        with patch("observation.live.cv2.VideoCapture", return_value=cap):
            source = LiveSource(LiveSourceConfig(device_id=0))
            assert not source.is_ready()

            source.open()

            assert source.kind is InputKind.LIVE
            assert source.is_ready()
            assert source.natural_size() == (1280, 720)
            fd = source.capture()

        assert fd.size == (1280, 720)
        assert fd.source == "default"
        cap.set.assert_any_call(cv2.CAP_PROP_BUFFERSIZE, 1)

    def test_unknown_size_is_not_ready(self):
        cap = _mock_capture([], width=0, height=0)
        with patch("observation.live.cv2.VideoCapture", return_value=cap):
            source = LiveSource(LiveSourceConfig(device_id=0))
            source.open()

            assert not source.is_ready()
            assert source.capture() is None

    def test_open_retries_then_fails(self):
        cap = _mock_capture([], opened=False)
        with patch("observation.live.cv2.VideoCapture", return_value=cap) as ctor, \
             patch("observation.live.time.sleep") as sleep:
            source = LiveSource(LiveSourceConfig(device_id=2, max_retries=2))
            with pytest.raises(RuntimeError, match="after 2 attempts"):
                source.open()

        assert ctor.call_count == 2
        sleep.assert_called_once()
        assert not source.is_open

    def test_reinitializes_after_read_failures(self):
        failing = _mock_capture([(False, None)] * 3)
        healthy = _mock_capture([(True, _frame())])
        with patch("observation.live.cv2.VideoCapture", side_effect=[failing, healthy]) as ctor:
            source = LiveSource(LiveSourceConfig(device_id=0, max_read_failures=3))
            source.open()

            results = [source.capture() for _ in range(3)]
            recovered = source.capture()

        assert results == [None, None, None]
        assert ctor.call_count == 2
        failing.release.assert_called()
        assert recovered is not None
        assert recovered.frame_index == 1

    def test_failed_reinitialization_does_not_sleep(self):
        failing = _mock_capture([(False, None)] * 2)
        dead = _mock_capture([], opened=False)
        with patch("observation.live.cv2.VideoCapture", side_effect=[failing, dead]) as ctor, \
             patch("observation.live.time.sleep") as sleep:
            source = LiveSource(LiveSourceConfig(device_id=0, max_retries=3, max_read_failures=2))
            source.open()

            results = [source.capture() for _ in range(2)]

        assert results == [None, None]
        assert ctor.call_count == 2
        sleep.assert_not_called()
        assert not source.is_ready()

    def test_context_manager_closes(self):
        cap = _mock_capture([])
        with patch("observation.live.cv2.VideoCapture", return_value=cap):
            with LiveSource(LiveSourceConfig(device_id=0)) as source:
                assert source.is_open
        assert not source.is_open
        cap.release.assert_called_once()


def test_frame_data_from_numpy():
    frame = _frame(w=640, h=480)
    fd = FrameData.from_numpy(frame, timestamp=time.time(), frame_index=42, source="test-source")

    assert fd.width == 640
    assert fd.height == 480
    assert fd.size == (640, 480)
    assert fd.frame_index == 42
    assert fd.frame is frame

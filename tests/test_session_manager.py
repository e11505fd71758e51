import threading
from datetime import datetime, timedelta

from services.preview_store import PreviewStore
from services.session_manager import SessionManager
from services.upload_wizard import UploadWizard

from conftest import BlockingRelay, FakeRelay, RecordingListener, make_image


def build_manager(timeout_minutes=60, relay=None):
    previews = PreviewStore()
    relay = relay or FakeRelay()

    def factory(listener):
        return UploadWizard(relay, previews=previews, listener=listener,
                             tick_interval=0.01, display_delay=0)

    return SessionManager(factory, session_timeout_minutes=timeout_minutes), previews


def test_create_and_get():
    manager, _ = build_manager()
    wizard = manager.create_session("sid-1", RecordingListener())

    assert manager.get_session("sid-1") is wizard
    assert manager.get_session("other") is None
    assert manager.get_session_count() == 1


def test_close_releases_previews():
    manager, previews = build_manager()
    wizard = manager.create_session("sid-1", RecordingListener())
    wizard.select_files([make_image()])
    assert len(previews) == 1

    assert manager.close_session("sid-1") is True
    assert len(previews) == 0
    assert manager.close_session("sid-1") is False


def test_recreating_session_closes_previous_wizard():
    manager, previews = build_manager()
    first = manager.create_session("sid-1", RecordingListener())
    first.select_files([make_image()])

    second = manager.create_session("sid-1", RecordingListener())

    assert second is not first
    assert len(previews) == 0
    assert manager.get_session_count() == 1


def test_expired_sessions_are_closed():
    manager, previews = build_manager(timeout_minutes=1)
    wizard = manager.create_session("sid-1", RecordingListener())
    wizard.select_files([make_image()])
    manager.sessions["sid-1"].last_updated = datetime.now() - timedelta(minutes=5)

    assert manager.cleanup_expired_sessions() == 1
    assert manager.get_session_count() == 0
    assert len(previews) == 0


def test_get_expired_session_returns_none():
    manager, previews = build_manager(timeout_minutes=1)
    wizard = manager.create_session("sid-1", RecordingListener())
    wizard.select_files([make_image()])
    manager.sessions["sid-1"].last_updated = datetime.now() - timedelta(minutes=5)

    assert manager.get_session("sid-1") is None
    assert len(previews) == 0


def test_uploading_session_outlives_timeout():
    relay = BlockingRelay()
    manager, previews = build_manager(timeout_minutes=1, relay=relay)
    wizard = manager.create_session("sid-1", RecordingListener())
    wizard.select_files([make_image("model.png")])
    wizard.advance()
    wizard.select_files([make_image("shirt.png")])

    worker = threading.Thread(target=wizard.submit)
    worker.start()
    try:
        assert relay.started.wait(2)
        manager.sessions["sid-1"].last_updated = datetime.now() - timedelta(minutes=5)

        assert manager.get_session("sid-1") is wizard
        manager.sessions["sid-1"].last_updated = datetime.now() - timedelta(minutes=5)
        assert manager.cleanup_expired_sessions() == 0
        assert len(previews) == 2
    finally:
        relay.release()
        worker.join(2)

    assert wizard.error is None
    assert len(relay.calls) == 1

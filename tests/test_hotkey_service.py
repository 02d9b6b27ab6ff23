import pytest

from clipshelf.models.hotkey import (
    DEFAULT_HOTKEY,
    HotkeyConfig,
    InvalidHotkeyError,
    KeyEvent,
    Modifier,
)
from clipshelf.services.hotkey_service import HotkeyMatcher, HotkeyRecorder, HotkeyService

PRIMARY_SHIFT = int(Modifier.PRIMARY | Modifier.SHIFT)
CAPS_LOCK = 1024


class TestHotkeyMatcher:

    def setup_method(self):
        self.matcher = HotkeyMatcher(HotkeyConfig(key_code=3, modifiers=PRIMARY_SHIFT))

    def test_exact_combination_matches(self):
        assert self.matcher.matches(KeyEvent(3, PRIMARY_SHIFT))

    def test_missing_modifier_does_not_match(self):
        assert not self.matcher.matches(KeyEvent(3, int(Modifier.PRIMARY)))

    def test_other_key_does_not_match(self):
        assert not self.matcher.matches(KeyEvent(4, PRIMARY_SHIFT))

    def test_extra_recognized_modifier_does_not_match(self):
        assert not self.matcher.matches(KeyEvent(3, PRIMARY_SHIFT | Modifier.ALT))

    def test_unrecognized_flags_are_ignored(self):
        assert self.matcher.matches(KeyEvent(3, PRIMARY_SHIFT | CAPS_LOCK | 1 << 23))

    def test_empty_modifier_config_never_matches(self):
        matcher = HotkeyMatcher(HotkeyConfig(key_code=3, modifiers=0))
        assert not matcher.matches(KeyEvent(3, 0))
        assert not matcher.matches(KeyEvent(3, CAPS_LOCK))


class TestHotkeyRecorder:

    def test_bare_key_is_ignored_and_recording_continues(self):
        recorded = []
        recorder = HotkeyRecorder(on_recorded=recorded.append)
        recorder.start()

        assert recorder.handle(KeyEvent(5, 0)) is None
        assert recorder.handle(KeyEvent(5, CAPS_LOCK)) is None
        assert recorder.is_recording
        assert recorded == []

    def test_modified_key_is_recorded_and_ends_recording(self):
        recorded = []
        recorder = HotkeyRecorder(on_recorded=recorded.append)
        recorder.start()

        config = recorder.handle(KeyEvent(9, int(Modifier.ALT) | CAPS_LOCK))

        assert config == HotkeyConfig(key_code=9, modifiers=int(Modifier.ALT))
        assert recorded == [config]
        assert not recorder.is_recording

    def test_events_outside_recording_are_ignored(self):
        recorder = HotkeyRecorder()
        assert recorder.handle(KeyEvent(9, PRIMARY_SHIFT)) is None

    def test_cancel(self):
        recorder = HotkeyRecorder()
        recorder.start()
        recorder.cancel()
        assert recorder.handle(KeyEvent(9, PRIMARY_SHIFT)) is None


@pytest.fixture
def triggers():
    return []


@pytest.fixture
def service(key_source, settings, triggers):
    service = HotkeyService(key_source, settings, on_trigger=lambda: triggers.append(1))
    service.start()
    yield service
    service.stop()


def test_default_hotkey_triggers(service, key_source, triggers):
    assert key_source.press(3, PRIMARY_SHIFT) is True
    assert triggers == [1]


def test_non_matching_event_passes_through(service, key_source, triggers):
    assert key_source.press(3, int(Modifier.PRIMARY)) is False
    assert triggers == []


def test_recording_updates_settings_and_matcher(service, key_source, settings, triggers):
    service.start_recording()

    assert key_source.press(3, 0) is True
    assert service.recorder.is_recording
    assert settings.hotkey == DEFAULT_HOTKEY

    key_source.press(40, int(Modifier.SECONDARY))
    assert not service.recorder.is_recording
    assert settings.hotkey == HotkeyConfig(key_code=40, modifiers=int(Modifier.SECONDARY))

    assert key_source.press(3, PRIMARY_SHIFT) is False
    assert key_source.press(40, int(Modifier.SECONDARY)) is True
    assert triggers == [1]


def test_settings_change_reloads_matcher(service, key_source, settings, triggers):
    settings.hotkey = HotkeyConfig(key_code=9, modifiers=int(Modifier.ALT))

    key_source.press(9, int(Modifier.ALT))
    assert triggers == [1]


def test_stop_releases_listeners(key_source, settings):
    service = HotkeyService(key_source, settings, on_trigger=lambda: None)
    service.start()
    service.stop()

    assert key_source.handler is None
    assert key_source.stop_calls == 1
    service.stop()
    assert key_source.stop_calls == 1


def test_untrusted_source_logs_advisory(key_source, settings, caplog):
    key_source.trusted = False
    service = HotkeyService(key_source, settings, on_trigger=lambda: None)
    with caplog.at_level("WARNING"):
        service.start()
    service.stop()

    assert "not permitted" in caplog.text
    assert key_source.start_calls == 1


def test_callback_failure_does_not_escape(key_source, settings):
    def boom():
        raise RuntimeError("popover failed")

    service = HotkeyService(key_source, settings, on_trigger=boom)
    service.start()

    assert key_source.press(3, PRIMARY_SHIFT) is True


def test_display_name():
    assert DEFAULT_HOTKEY.display_name == "⌘⇧F"
    assert HotkeyConfig(99, int(Modifier.ALT | Modifier.SECONDARY)).display_name == "⌥⌃Key(99)"


def test_validate_rejects_bare_key():
    with pytest.raises(InvalidHotkeyError):
        HotkeyConfig(key_code=3, modifiers=CAPS_LOCK).validate()


def test_bare_key_config_constructs_but_is_invalid(settings):
    config = HotkeyConfig(key_code=3, modifiers=0)

    assert not config.is_valid
    with pytest.raises(InvalidHotkeyError):
        settings.hotkey = config
    assert settings.hotkey == DEFAULT_HOTKEY

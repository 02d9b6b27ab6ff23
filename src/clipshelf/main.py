#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from clipshelf.clipboard import Pasteboard, get_pasteboard
from clipshelf.config import STORE_BACKENDS, AppConfig
from clipshelf.database import JsonFileSettingsStore, MemorySettingsStore, SettingsStore
from clipshelf.hotkeys import KeyEventSource, get_key_event_source
from clipshelf.services import (
    ClipboardService,
    HistoryStore,
    HotkeyService,
    PersistenceService,
    Settings,
)
from clipshelf.utils.scheduler import Handle, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 60


def create_store(config: AppConfig) -> SettingsStore:
    if config.store == "memory":
        return MemorySettingsStore()
    if config.store == "redis":
        from clipshelf.database.redis_manager import RedisSettingsStore
        return RedisSettingsStore()
    return JsonFileSettingsStore(config.settings_path)


def preview(content: str, width: int = PREVIEW_LENGTH) -> str:
    flat = " ".join(content.split())
    return flat if len(flat) <= width else flat[:width - 1] + "…"


class ClipShelfApp:

    def __init__(
        self,
        config: AppConfig,
        store: Optional[SettingsStore] = None,
        pasteboard: Optional[Pasteboard] = None,
        key_source: Optional[KeyEventSource] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.config = config
        self.store = store or create_store(config)
        self.settings = Settings(self.store)
        self.scheduler = scheduler or ThreadingScheduler()
        self.history = HistoryStore(self.settings)
        self.pasteboard = pasteboard or get_pasteboard()
        self.clipboard_service = ClipboardService(
            self.pasteboard, self.history, self.scheduler, poll_interval=config.poll_interval)
        self.persistence = PersistenceService(
            self.history,
            self.settings,
            self.scheduler,
            delay=config.save_delay,
            max_wait=config.save_max_wait,
        )
        self._key_source = key_source
        self.hotkey_service: Optional[HotkeyService] = None
        self._refresh_handle: Optional[Handle] = None
        self._stop_event = threading.Event()
        self.running = False

    def load(self) -> None:
        self.persistence.load()
        self.persistence.attach()

    def _get_hotkey_service(self) -> HotkeyService:
        if self.hotkey_service is None:
            source = self._key_source or get_key_event_source()
            self.hotkey_service = HotkeyService(source, self.settings, on_trigger=self.toggle)
        return self.hotkey_service

    def toggle(self) -> None:
        entries = self.history.entries[:10]
        print(f"\n--- clipboard history ({len(self.history)} entries) ---")
        for entry in entries:
            print(f"{entry.id}  {preview(entry.content)}")
        sys.stdout.flush()

    def start(self):
        if self.running:
            return

        self.running = True
        self._stop_event.clear()
        self.load()
        self.clipboard_service.start()
        # Other clipshelf commands write to the same store.
        self._refresh_handle = self.scheduler.call_every(
            self.config.poll_interval, self.settings.refresh)
        try:
            self._get_hotkey_service().start()
        except Exception as e:
            logger.warning(f"Hotkey unavailable, continuing without it: {e}")

        print(
            f"clipshelf running - {len(self.history)} entries, "
            f"hotkey {self.settings.hotkey.display_name}. Press Ctrl+C to stop")

    def stop(self):
        if not self.running:
            return

        self.running = False
        self.clipboard_service.stop()
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None
        if self.hotkey_service is not None:
            self.hotkey_service.stop()
        self.close()
        self._stop_event.set()
        print("clipshelf stopped")

    def close(self) -> None:
        """Flush pending history writes and release the settings store."""
        self.persistence.close()
        try:
            self.store.close()
        except Exception as e:
            logger.warning(f"Could not close settings store: {e}")

    def request_stop(self) -> None:
        self._stop_event.set()

    def run_forever(self):
        self.start()

        try:
            self._get_hotkey_service().source.run_until(self._stop_event)
        except KeyboardInterrupt:
            print("\nStopping...")
        finally:
            self.stop()


def _open_app(config: AppConfig) -> ClipShelfApp:
    app = ClipShelfApp(config)
    app.load()
    return app


def cmd_run(args: argparse.Namespace, config: AppConfig) -> int:
    app = ClipShelfApp(config)

    def signal_handler(signum, frame):
        app.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    app.run_forever()
    return 0


def cmd_list(args: argparse.Namespace, config: AppConfig) -> int:
    app = _open_app(config)
    entries = app.history.search(args.search or "")
    if args.limit is not None:
        entries = entries[:args.limit]
    for entry in entries:
        print(f"{entry.id}  {preview(entry.content)}")
    if not entries:
        print("(no entries)")
    app.close()
    return 0


def cmd_copy(args: argparse.Namespace, config: AppConfig) -> int:
    app = _open_app(config)
    try:
        if not app.history.copy_and_consume(args.id):
            print(f"No entry with id {args.id}", file=sys.stderr)
            return 1
        print("Copied to clipboard")
        return 0
    finally:
        app.close()


def cmd_delete(args: argparse.Namespace, config: AppConfig) -> int:
    app = _open_app(config)
    try:
        if not app.history.delete(args.id):
            print(f"No entry with id {args.id}", file=sys.stderr)
            return 1
        print("Deleted")
        return 0
    finally:
        app.close()


def cmd_config(args: argparse.Namespace, config: AppConfig) -> int:
    settings = Settings(create_store(config))
    if args.max_items is not None:
        settings.max_items = args.max_items
    print(f"maxItems: {settings.max_items}")
    print(f"hotkey:   {settings.hotkey.display_name}")
    settings.store.close()
    return 0


def cmd_record_hotkey(args: argparse.Namespace, config: AppConfig) -> int:
    settings = Settings(create_store(config))
    done = threading.Event()
    service = HotkeyService(
        get_key_event_source(), settings, on_trigger=lambda: None, on_recorded=lambda _: done.set())

    timeout = threading.Timer(args.timeout, done.set)
    timeout.daemon = True

    print("Press the new hotkey (it must include a modifier key)...")
    service.start()
    service.start_recording()
    timeout.start()
    try:
        service.source.run_until(done)
    finally:
        timeout.cancel()
        service.stop()
        settings.store.close()

    recorded = service.recorder.last_recorded
    if recorded is None:
        print("No hotkey recorded", file=sys.stderr)
        return 1
    print(f"Hotkey set to {recorded.display_name}")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="clipshelf",
        description="clipshelf - clipboard history with a global hotkey"
    )

    parser.add_argument(
        "--store",
        choices=STORE_BACKENDS,
        default=None,
        help="Settings store backend (default: json, or CLIPSHELF_STORE)"
    )

    parser.add_argument(
        "--settings-path",
        default=None,
        help="Settings file for the json store (default: ~/.clipshelf/settings.json)"
    )

    parser.add_argument(
        "-i", "--poll-interval",
        type=float,
        default=None,
        help="Clipboard polling interval in seconds (default: 2.0)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Enable verbose logging (-vv for debug)"
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="Watch the clipboard and listen for the hotkey")

    list_parser = sub.add_parser("list", help="Print the clipboard history")
    list_parser.add_argument("-s", "--search", default=None, help="Only entries containing TEXT")
    list_parser.add_argument("-n", "--limit", type=int, default=None, help="Print at most N entries")

    copy_parser = sub.add_parser("copy", help="Copy an entry to the clipboard and remove it")
    copy_parser.add_argument("id")

    delete_parser = sub.add_parser("delete", help="Delete an entry")
    delete_parser.add_argument("id")

    config_parser = sub.add_parser("config", help="Show or change settings")
    config_parser.add_argument("--max-items", type=int, default=None)

    record_parser = sub.add_parser("record-hotkey", help="Record a new global hotkey")
    record_parser.add_argument("--timeout", type=float, default=30.0)

    return parser.parse_args(argv)


COMMANDS = {
    None: cmd_run,
    "run": cmd_run,
    "list": cmd_list,
    "copy": cmd_copy,
    "delete": cmd_delete,
    "config": cmd_config,
    "record-hotkey": cmd_record_hotkey,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = AppConfig.from_env().with_overrides(
            store=args.store,
            settings_path=Path(args.settings_path).expanduser() if args.settings_path else None,
            poll_interval=args.poll_interval,
        )
    except ValueError as e:
        print(f"clipshelf: {e}", file=sys.stderr)
        return 2

    level = config.log_level
    if args.verbose == 1:
        level = "INFO"
    elif args.verbose > 1:
        level = "DEBUG"
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")

    try:
        return COMMANDS[args.command](args, config)
    except ValueError as e:
        print(f"clipshelf: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

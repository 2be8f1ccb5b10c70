#!/usr/bin/env python3
"""
Command-line control surface for the report monitor.
"""

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC = REPO_ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from chainabuse_monitor.core.config import ConfigManager  # noqa: E402
from chainabuse_monitor.core.errors import ConfigError, NotificationError  # noqa: E402
from chainabuse_monitor.core.storage.dedup_store import DedupStore  # noqa: E402
from chainabuse_monitor.monitor.fetcher import PageFetcher  # noqa: E402
from chainabuse_monitor.monitor.notifier import TelegramNotifier, format_test_message  # noqa: E402
from chainabuse_monitor.monitor.poll_loop import PollLoop  # noqa: E402


def _store_path(config: ConfigManager) -> Path:
    path = Path(config.monitor.store_path)
    return path if path.is_absolute() else REPO_ROOT / path


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def _build_loop(config: ConfigManager) -> PollLoop:
    telegram = config.require_telegram()
    settings = config.monitor
    store = DedupStore(_store_path(config), cap=settings.store_cap)
    store.load_from_durable()
    fetcher = PageFetcher(settings, proxy=config.proxy)
    notifier = TelegramNotifier(telegram, timeout=settings.request_timeout, attempts=settings.http_attempts)
    return PollLoop(fetcher, notifier, store, settings)


def cmd_run(config: ConfigManager, args: argparse.Namespace) -> int:
    if args.interval is not None:
        config.monitor.interval_seconds = args.interval
    config.print_summary()
    loop = _build_loop(config)
    try:
        loop.run_forever()
    except KeyboardInterrupt:
        print("\nStopping monitor...")
        loop.stop(wait=False)
    return 0


def cmd_check(config: ConfigManager, args: argparse.Namespace) -> int:
    """Baseline plus ``--cycles - 1`` steady cycles, back to back."""
    loop = _build_loop(config)
    results = [loop.run_cycle() for _ in range(max(1, args.cycles))]
    for result in results:
        label = "baseline" if result.baseline else "steady"
        if result.success:
            print(
                f"Poll #{result.poll_count} ({label}): {result.items_seen} items, "
                f"{result.notified} alerts, {result.suppressed} suppressed, "
                f"{result.failed_notifications} failed"
            )
        else:
            print(f"Poll #{result.poll_count} failed: {result.error}")
    return 0 if all(result.success for result in results) else 1


def cmd_status(config: ConfigManager, args: argparse.Namespace) -> int:
    store = DedupStore(_store_path(config), cap=config.monitor.store_cap)
    count = store.load_from_durable()
    snapshot = store.snapshot()
    summary = {
        "store_path": str(store.path),
        "fingerprints": count,
        "cap": store.cap,
        "last_saved": store.last_saved,
        "latest_prefix": snapshot[-1][:8] if snapshot else "",
    }
    print(json.dumps(summary, indent=2))
    return 0


def cmd_send_test(config: ConfigManager, args: argparse.Namespace) -> int:
    telegram = config.require_telegram()
    notifier = TelegramNotifier(telegram, timeout=config.monitor.request_timeout)
    try:
        notifier.send(args.message or format_test_message())
    except NotificationError as exc:
        print(f"❌ Test message failed: {exc}")
        return 1
    print("✅ Test message sent")
    return 0


COMMANDS = {
    "run": cmd_run,
    "check": cmd_check,
    "status": cmd_status,
    "send-test": cmd_send_test,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chainabuse-monitor", description="Report listing monitor CLI")
    parser.add_argument("--config-dir", type=Path, default=None, help="Directory with credentials.env/settings.json")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Poll continuously until interrupted")
    run.add_argument("--interval", type=_positive_float, default=None, help="Seconds between polls")

    check = sub.add_parser("check", help="Run poll cycles once and exit")
    check.add_argument("--cycles", type=int, default=1, help="Number of cycles (the first is the baseline)")

    sub.add_parser("status", help="Show the persisted dedup store")

    send_test = sub.add_parser("send-test", help="Send a test Telegram message")
    send_test.add_argument("--message", default=None, help="Custom message text (HTML)")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = ConfigManager(args.config_dir).load_all()
        return COMMANDS[args.command](config, args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

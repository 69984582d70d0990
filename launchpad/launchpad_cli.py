#!/usr/bin/env python3
"""Launchpad scanner: list installed applications from the command line.

Prints discovered apps as JSON. By default runs the fast metadata-only
scan; --icons streams icon batches as JSON lines as they are extracted.

Usage:
    PYTHONPATH=. python launchpad/launchpad_cli.py [--icons | --full] [--watch]
"""

import argparse
import json
import logging
import sys
import threading

from launchpad.app_scanner import DiscoveryPipeline
from launchpad.app_watcher import AppWatcher
from launchpad.config_manager import DEFAULT_CONFIG_PATH, get_config_manager
from launchpad.icon_cache import IconCache
from launchpad.progress_sink import QueueSink


def _print_json(data):
    sys.stdout.write(json.dumps(data) + "\n")
    sys.stdout.flush()


def _run_fast(pipeline):
    _print_json([r.to_dict() for r in pipeline.get_installed_apps_fast()])


def _run_full(pipeline):
    _print_json([r.to_dict() for r in pipeline.get_installed_apps()])


def _run_icons(pipeline):
    """Fast list first, then icon batches drained from a channel."""
    _run_fast(pipeline)
    sink = QueueSink()
    scan = threading.Thread(target=pipeline.load_app_icons, args=(sink,), name="icon-scan")
    scan.start()
    for batch in sink.drain():
        _print_json({"event": "icons-loaded", "updates": [u.to_dict() for u in batch]})
    scan.join()
    _print_json({"event": "icons-complete"})


def main():
    parser = argparse.ArgumentParser(description="Launchpad application scanner")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--icons", action="store_true",
                      help="Stream icon batches after the fast listing")
    mode.add_argument("--full", action="store_true",
                      help="Scan with icons and print everything at once")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH),
                        help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--clear-cache", action="store_true",
                        help="Delete cached icons before scanning")
    parser.add_argument("--watch", action="store_true",
                        help="Keep running and rescan when applications change")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    config_manager = get_config_manager()
    if not config_manager.load_json_file(args.config):
        logging.debug("Using default config (could not load %s)", args.config)

    cache = IconCache(config_manager.get_cache_dir())
    if args.clear_cache:
        logging.info("Removed %d cached icons", cache.clear())

    pipeline = DiscoveryPipeline.from_config(config_manager, cache=cache)
    if args.icons:
        run = _run_icons
    elif args.full:
        run = _run_full
    else:
        run = _run_fast
    run(pipeline)

    if not args.watch:
        return

    watcher = AppWatcher(
        config_manager.get_scan_roots(),
        lambda: run(pipeline),
        debounce_sec=config_manager.get("watch_debounce_sec"),
        poll_sec=config_manager.get("watch_poll_sec"),
    )
    watcher.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logging.info("Exiting.")
    finally:
        watcher.stop()


if __name__ == "__main__":
    main()

"""
Eats Ledger — Open the Scraper's Chrome Profile

Starts a real Chrome/Chromium on the scraper's profile directory, pointed at
the Uber orders export. Use it to log in once by hand; launch-mode scrapes
then reuse the session. With --remote-debugging-port the browser can also be
attached to (attach mode) while you keep it open.

Usage:
    python scripts/open_profile_browser.py
    python scripts/open_profile_browser.py --remote-debugging-port 9222
    CDP_URL=http://127.0.0.1:9222 python -m eats_ledger.main
"""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from pathlib import Path

from eats_ledger.config import ORDERS_PAGE_URL, settings

BROWSER_CANDIDATES = ("google-chrome", "chromium", "chromium-browser")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Open Chrome on the Eats Ledger scraper profile.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/open_profile_browser.py
  python scripts/open_profile_browser.py --remote-debugging-port 9222
""",
    )
    parser.add_argument(
        "--user-data-dir",
        type=str,
        default=settings.PLAYWRIGHT_USER_DATA_DIR,
        help="Profile directory (default: PLAYWRIGHT_USER_DATA_DIR).",
    )
    parser.add_argument(
        "--remote-debugging-port",
        type=int,
        default=None,
        help="Expose CDP on this port so the scraper can attach.",
    )
    return parser.parse_args()


def find_browser() -> str | None:
    for name in BROWSER_CANDIDATES:
        path = shutil.which(name)
        if path:
            return path
    return None


def build_command(browser: str, profile_dir: Path, port: int | None) -> list[str]:
    command = [
        browser,
        f"--user-data-dir={profile_dir}",
        "--profile-directory=Default",
    ]
    if port is not None:
        command.append(f"--remote-debugging-port={port}")
    command.append(ORDERS_PAGE_URL)
    return command


def main() -> None:
    args = parse_args()

    browser = find_browser()
    if browser is None:
        print(
            "Could not find google-chrome, chromium, or chromium-browser in PATH.",
            file=sys.stderr,
        )
        print("Install one of those browsers, then re-run this script.", file=sys.stderr)
        sys.exit(1)

    profile_dir = Path(args.user_data_dir).expanduser().resolve()
    profile_dir.mkdir(parents=True, exist_ok=True)

    command = build_command(browser, profile_dir, args.remote_debugging_port)
    print(f"Opening {ORDERS_PAGE_URL}")
    print(f"  browser     = {browser}")
    print(f"  profile dir = {profile_dir}")
    if args.remote_debugging_port is not None:
        print(f"  CDP_URL     = http://127.0.0.1:{args.remote_debugging_port}")

    os.execv(browser, command)


if __name__ == "__main__":
    main()

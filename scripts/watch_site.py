#!/usr/bin/env python3
"""
Rebuild the site whenever templates, content or theme files change.

Polls modification times (no extra dependency), waits for edits to settle,
then runs scripts/build_site.py in a child process.

Usage:
    python3 scripts/watch_site.py
    python3 scripts/watch_site.py --interval 0.5
"""

import argparse
import subprocess
import sys
import time
from pathlib import Path

from site_utils import SCRIPTS_DIR, default_project_root

WATCH_DIRS = ['templates', 'data', 'content', 'themes']
BUILD_SCRIPT = SCRIPTS_DIR / 'build_site.py'
DEBOUNCE_SECONDS = 0.6
POLL_SECONDS = 0.3


def snapshot(root: Path, watch_dirs=WATCH_DIRS, extra_files=(BUILD_SCRIPT,)) -> dict:
    """path -> mtime for every watched file. Dotfiles and dot-dirs are ignored."""
    mtimes = {}
    for name in watch_dirs:
        folder = Path(root) / name
        if not folder.is_dir():
            continue
        for path in folder.rglob('*'):
            rel_parts = path.relative_to(folder).parts
            if any(part.startswith('.') for part in rel_parts) or not path.is_file():
                continue
            try:
                mtimes[str(path)] = path.stat().st_mtime
            except FileNotFoundError:
                continue
    for path in extra_files:
        path = Path(path)
        if path.is_file():
            mtimes[str(path)] = path.stat().st_mtime
    return mtimes


def changed_files(before: dict, after: dict) -> list:
    """Paths added, removed or modified between two snapshots."""
    changed = [p for p, mtime in after.items() if before.get(p) != mtime]
    changed.extend(p for p in before if p not in after)
    return sorted(changed)


def run_build(root: Path) -> bool:
    """Run the build script and report the outcome."""
    print("[watch] Building...")
    result = subprocess.run([sys.executable, str(BUILD_SCRIPT), '--root', str(root)], cwd=str(root))
    if result.returncode == 0:
        print("[watch] ✅ Build OK")
        return True
    print(f"[watch] ❌ Build failed (exit {result.returncode})", file=sys.stderr)
    return False


def watch(root: Path, interval: float = POLL_SECONDS, debounce: float = DEBOUNCE_SECONDS):
    """Poll forever; one build per burst of changes."""
    state = snapshot(root)
    pending_since = None
    while True:
        time.sleep(interval)
        current = snapshot(root)
        changed = changed_files(state, current)
        if changed:
            for path in changed[:5]:
                print(f"[watch] changed: {path}")
            if len(changed) > 5:
                print(f"[watch] ... and {len(changed) - 5} more")
            state = current
            pending_since = time.monotonic()
            continue
        if pending_since is not None and time.monotonic() - pending_since >= debounce:
            pending_since = None
            run_build(root)


def main():
    parser = argparse.ArgumentParser(description='Rebuild the site on file changes')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Project root')
    parser.add_argument('--interval', type=float, default=POLL_SECONDS, help='Poll interval in seconds')
    parser.add_argument('--no-initial-build', action='store_true', help='Skip the build on start')
    args = parser.parse_args()

    root = args.root.resolve()
    print(f"[watch] Watching {', '.join(WATCH_DIRS)} and scripts/build_site.py under {root}")
    print("[watch] Ctrl+C to stop")
    if not args.no_initial_build:
        run_build(root)
    try:
        watch(root, interval=args.interval)
    except KeyboardInterrupt:
        print("\n[watch] Stopped.")
    return 0


if __name__ == '__main__':
    exit(main())

#!/usr/bin/env python3
"""
Local preview server for the built site.

Serves the project root when it holds a built index.html, otherwise dist/.
Folder URLs such as /sports.games/ or /page/2/ resolve to their index.html,
anything outside the output folder is refused, and misses get a plain-text 404.

Usage:
    python3 scripts/serve_site.py              # http://localhost:5501/
    python3 scripts/serve_site.py --port 8080
    PORT=8080 python3 scripts/serve_site.py
"""

import argparse
import http.server
from pathlib import Path
from urllib.parse import unquote, urlsplit

from site_config import load_config
from site_utils import default_project_root

MIME_TYPES = {
    '.html': 'text/html; charset=utf-8',
    '.css': 'text/css',
    '.js': 'application/javascript',
    '.json': 'application/json',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
    '.svg': 'image/svg+xml',
    '.ico': 'image/x-icon',
    '.webmanifest': 'application/manifest+json',
    '.xml': 'application/xml',
    '.txt': 'text/plain',
    '.woff2': 'font/woff2',
    '.woff': 'font/woff',
}


def resolve_path(out_dir: Path, url_path: str):
    """File to serve for a request path, or None (missing or outside out_dir)."""
    root = Path(out_dir).resolve()
    decoded = unquote(urlsplit(url_path).path).strip()
    segments = [s for s in decoded.strip('/').split('/') if s]
    target = root.joinpath(*segments) if segments else root / 'index.html'
    resolved = target.resolve()
    if resolved != root and root not in resolved.parents:
        return None
    if resolved.is_dir():
        index = resolved / 'index.html'
        return index if index.is_file() else None
    if resolved.is_file():
        return resolved
    index = resolved / 'index.html'
    return index if index.is_file() else None


def content_type(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), 'application/octet-stream')


class SiteHandler(http.server.BaseHTTPRequestHandler):
    """GET/HEAD only; the output folder is set by make_server."""
    out_dir = None

    def _send(self, include_body: bool):
        path = resolve_path(self.out_dir, self.path)
        if path is None:
            body = b'Not Found'
            self.send_response(404)
            self.send_header('Content-Type', 'text/plain; charset=utf-8')
        else:
            body = path.read_bytes()
            self.send_response(200)
            self.send_header('Content-Type', content_type(path))
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def do_GET(self):
        self._send(include_body=True)

    def do_HEAD(self):
        self._send(include_body=False)


def make_server(out_dir: Path, port: int, host: str = '127.0.0.1') -> http.server.ThreadingHTTPServer:
    handler = type('BoundSiteHandler', (SiteHandler,), {'out_dir': Path(out_dir)})
    return http.server.ThreadingHTTPServer((host, port), handler)


def pick_output_dir(root: Path) -> Path:
    """Project root when it has a built index.html, else dist/."""
    root = Path(root)
    return root if (root / 'index.html').exists() else root / 'dist'


def main():
    parser = argparse.ArgumentParser(description='Serve the built site locally')
    parser.add_argument('--root', type=Path, default=default_project_root(), help='Project root')
    parser.add_argument('--dir', type=Path, help='Folder to serve (default: root or dist/)')
    parser.add_argument('--port', type=int, help='Port (default: PORT or 5501)')
    parser.add_argument('--host', default='127.0.0.1')
    args = parser.parse_args()

    config = load_config(args.root)
    out_dir = args.dir or pick_output_dir(args.root)
    port = args.port or config.port

    server = make_server(out_dir, port, args.host)
    print(f"Serving {out_dir}")
    print(f"Server: http://localhost:{port}/")
    print(f"Category: http://localhost:{port}/sports.games/  http://localhost:{port}/snow-rider.games/  ...")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        server.server_close()
    return 0


if __name__ == '__main__':
    exit(main())

from __future__ import annotations

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class FakeGitHub:
    """Canned GitHub API responses served over real HTTP."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, float]] = {}
        self.received: list[dict[str, object]] = []
        self._lock = threading.Lock()
        self.url = ""

    def add(self, path: str, payload: object, status: int = 200, delay: float = 0.0) -> None:
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        self.routes[path] = (status, body, delay)

    def add_repos(self, account: str, *full_names: str) -> None:
        self.add(f"/users/{account}/repos", [{"full_name": n, "private": False} for n in full_names])

    def add_commits(self, full_name: str, *emails: str, status: int = 200, delay: float = 0.0) -> None:
        commits = [
            {"sha": f"{idx:040x}", "commit": {"author": {"name": "Someone", "email": email}}}
            for idx, email in enumerate(emails)
        ]
        self.add(f"/repos/{full_name}/commits", commits, status=status, delay=delay)

    def record(self, path: str, authorization: str | None) -> None:
        with self._lock:
            self.received.append({"path": path, "authorization": authorization})

    @property
    def paths(self) -> list[object]:
        with self._lock:
            return [r["path"] for r in self.received]


@pytest.fixture
def fake_github():
    api = FakeGitHub()

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802
            api.record(self.path, self.headers.get("Authorization"))
            status, body, delay = api.routes.get(
                self.path, (404, b'{"message": "Not Found"}', 0.0)
            )
            if delay:
                time.sleep(delay)
            try:
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)
            except (BrokenPipeError, ConnectionResetError):
                return

        def log_message(self, fmt: str, *args: object) -> None:
            return

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    server.daemon_threads = True
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    api.url = f"http://127.0.0.1:{server.server_port}"
    try:
        yield api
    finally:
        server.shutdown()
        server.server_close()

from __future__ import annotations

import json
import os
import signal
import socket
import subprocess
import sys
import time
from pathlib import Path

import httpx
import pytest


pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")

ROOT = Path(__file__).resolve().parents[1]

_SERVE = (
    "import sys\n"
    "from workload.config import Settings\n"
    "from workload.server import serve\n"
    "serve(Settings(host='127.0.0.1', port=int(sys.argv[1])))\n"
)


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _spawn(port: int) -> subprocess.Popen:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))
    # Must not move the listener: the process takes no configuration from the environment.
    env["PORT"] = str(_free_port())
    return subprocess.Popen(
        [sys.executable, "-u", "-c", _SERVE, str(port)],
        cwd=ROOT,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )


def _wait_until_serving(proc: subprocess.Popen, port: int) -> None:
    deadline = time.monotonic() + 15
    while time.monotonic() < deadline:
        if proc.poll() is not None:
            raise AssertionError(f"server exited early:\n{proc.stdout.read()}")
        try:
            if httpx.get(f"http://127.0.0.1:{port}/healthz", timeout=0.5).status_code == 200:
                return
        except httpx.TransportError:
            pass
        time.sleep(0.1)
    proc.kill()
    raise AssertionError("server did not start listening")


def _records(output: str) -> list[dict]:
    records = []
    for line in output.splitlines():
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if isinstance(record, dict):
            records.append(record)
    return records


@pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
def test_exit_signal_drains_and_exits_with_status_zero(sig) -> None:
    port = _free_port()
    proc = _spawn(port)
    try:
        _wait_until_serving(proc, port)
        proc.send_signal(sig)
        output, _ = proc.communicate(timeout=20)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    assert proc.returncode == 0, output
    events = [record.get("event") for record in _records(output)]
    assert events[0] == "listening"
    assert events[-2:] == ["shutdown_started", "shutdown_complete"]
    # uvicorn's own startup/shutdown chatter stays out of the stream.
    assert "Started server process" not in output
    assert "Finished server process" not in output


def test_crash_exits_nonzero_and_logs_nothing_after_crash_line() -> None:
    port = _free_port()
    proc = _spawn(port)
    try:
        _wait_until_serving(proc, port)
        try:
            httpx.get(f"http://127.0.0.1:{port}/crash", timeout=5)
        except httpx.TransportError:
            pass
        proc.wait(timeout=10)
        output = proc.stdout.read()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    assert proc.returncode == 1, output
    records = _records(output)
    assert records[-1]["event"] == "process_crash_requested"
    assert records[-1]["exit_code"] == 1

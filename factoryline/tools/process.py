"""
Child process handles.

The runner talks to processors through a small handle interface so the
sequential, interrupt-forwarding execution model can be exercised with a
fake process in tests.
"""

import signal
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol


class ProcessHandle(Protocol):
    pid: int

    def wait(self) -> int:
        """Block until the child exits. Negative return = killed by signal."""
        ...

    def send_signal(self, sig: int) -> None: ...


Spawner = Callable[[list[str], Mapping[str, str], Optional[Path]], ProcessHandle]


class PopenHandle:
    """ProcessHandle backed by subprocess.Popen."""

    def __init__(self, popen: subprocess.Popen):
        self._popen = popen
        self.pid = popen.pid

    def wait(self) -> int:
        return self._popen.wait()

    def send_signal(self, sig: int) -> None:
        if self._popen.poll() is None:
            self._popen.send_signal(sig)


def spawn_process(cmd: list[str], env: Mapping[str, str], cwd: Optional[Path] = None) -> PopenHandle:
    """Start `cmd` as an independent process sharing our stdin/stdout/stderr.

    Raises:
        OSError: If the executable cannot be started
    """
    popen = subprocess.Popen(cmd, env=dict(env), cwd=str(cwd) if cwd else None)
    return PopenHandle(popen)


def signal_name(returncode: int) -> Optional[str]:
    """Name of the signal that terminated a child, or None for a normal exit."""
    if returncode >= 0:
        return None
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


@contextmanager
def forward_interrupts(handle: ProcessHandle, on_interrupt: Optional[Callable[[], None]] = None):
    """Forward SIGINT received by this process to `handle` while in the block.

    The child gets the interrupt and runs its own cleanup; we keep waiting for
    it to exit. The previous handler is restored on the way out.
    """
    def _forward(signum, frame):
        if on_interrupt:
            on_interrupt()
        handle.send_signal(signal.SIGINT)

    try:
        original = signal.signal(signal.SIGINT, _forward)
    except ValueError:
        # Not the main thread; signals can't be forwarded from here
        yield
        return

    try:
        yield
    finally:
        signal.signal(signal.SIGINT, original)

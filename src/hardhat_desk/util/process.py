"""Child process helpers shared by the executor and the network manager."""

from __future__ import annotations

import asyncio
import os
import signal

POSIX = os.name == "posix"

EXIT_POLL_INTERVAL = 0.05


def spawn_options() -> dict[str, object]:
    """Keyword arguments that put a child in its own process group.

    ``npx`` starts node as a grandchild, so signals are sent to the whole
    group to avoid leaving it behind.
    """
    if POSIX:
        return {"start_new_session": True}
    return {}


def signal_tree(process: asyncio.subprocess.Process, *, force: bool = False) -> None:
    """Terminate (or kill when ``force``) a child and its process group.

    On POSIX the group is signalled even after the leader has exited, since
    grandchildren keep running under it.
    """
    if POSIX:
        try:
            os.killpg(process.pid, signal.SIGKILL if force else signal.SIGTERM)
        except ProcessLookupError:
            pass
        except PermissionError:
            # Group not ours any more; fall back to the direct child.
            if process.returncode is None and force:
                process.kill()
            elif process.returncode is None:
                process.terminate()
        return
    if process.returncode is not None:
        return
    if force:
        process.kill()
    else:
        process.terminate()


async def wait_exit(process: asyncio.subprocess.Process, interval: float = EXIT_POLL_INTERVAL) -> int:
    """Wait for the direct child to exit and return its code.

    ``Process.wait()`` can also wait for the pipes to close, which a
    surviving grandchild holds open. ``returncode`` is set as soon as the
    child is reaped.
    """
    while process.returncode is None:
        await asyncio.sleep(interval)
    return process.returncode

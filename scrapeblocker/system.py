"""Facts about the session this program runs in."""

from __future__ import annotations

import csv
import io
import os
import subprocess
import sys

_IS_WINDOWS = sys.platform == "win32"


class SystemManager:
    """Answers questions about the current user session."""

    def current_session_id(self) -> int:
        """Return the session id of the running process."""
        if not _IS_WINDOWS:
            return os.getsid(0)
        pid = os.getpid()
        try:
            completed = subprocess.run(
                ["tasklist", "/FI", f"PID eq {pid}", "/FO", "CSV", "/NH"],
                capture_output=True,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise OSError(f"could not query session of process {pid}: {exc}") from exc
        output = completed.stdout.decode("utf-8", errors="replace")
        for row in csv.reader(io.StringIO(output)):
            if len(row) >= 4 and row[1] == str(pid):
                try:
                    return int(row[3])
                except ValueError as exc:
                    raise OSError(f"unexpected session value {row[3]!r}") from exc
        raise OSError(f"session of process {pid} not found")
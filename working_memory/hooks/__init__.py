"""Claude Code hook entrypoint.

Hook processes are spawned fresh for every event, run inside the user's
session and must never block or fail it: every handler is fail-open and
the process always exits 0.
"""

"""Domain layer (pure logic).

- Keep game rules and calculations here: day numbering, round transitions,
  catalog heuristics.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no cache.
- Prefer deterministic functions (time passed in as an argument).
"""

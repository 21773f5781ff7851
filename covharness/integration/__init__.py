"""
Test harness wiring: the pytest plugin (`support`), the suite driver (`ci`) and
the suite itself under `tests/`.
"""

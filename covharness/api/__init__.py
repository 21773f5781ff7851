"""
Library surface for the coverage-tool conformance harness.

Modules, leaf-first:
- `fixtures`: fixture models and golden-file paths.
- `workspace`: clean-room staging of git-tracked fixture files.
- `tool`: hermetic coverage-tool commands.
- `normalize`: platform/mangling normalization of reports.
- `golden`: golden comparison and report scenarios.
- `profraw`: raw-profile header corruption.
- `process`: subprocess capture and assertions.
"""

"""
covharness: conformance harness for the `cargo-llvm-cov` coverage tool.

Library surface lives under `covharness.api`; the pytest plugin and suite live
under `covharness.integration`.
"""

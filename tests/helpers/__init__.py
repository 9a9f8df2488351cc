"""Shared test helpers.

- env: TestGitRepo / TestHgRepo real repositories for integration tests
- fakes: FakeProbe for engine tests that do not need a VCS executable
"""

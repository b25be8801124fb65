"""polycov - unit-test coverage aggregation for polyglot monorepos."""

__version__ = "0.1.0"

"""ElxaFS test suite."""

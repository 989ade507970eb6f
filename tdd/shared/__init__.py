# Cross-cutting test utilities shared across all test types

# RepoView Test Suite
# This package contains all tests organized by type:
# - unit/: Fast, isolated tests for services, schemas, config and the CLI
# - integration/: Tests for API endpoints driven through the ASGI app

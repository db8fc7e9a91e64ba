"""Exit codes used by CLI commands."""

SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 2
NO_DATA_EXIT_CODE = 3
STORE_EXIT_CODE = 4

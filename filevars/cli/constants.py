from pathlib import Path

# Directory where the user is running the CLI from
CWD = Path.cwd()

# Exit codes, on top of the daemon's own 0/1
EXIT_CONFIG_ERROR = 2
EXIT_FILEVARS_ERROR = 102
EXIT_FILE_NOT_FOUND = 103
EXIT_PERMISSION_DENIED = 104
EXIT_UNEXPECTED_ERROR = 105

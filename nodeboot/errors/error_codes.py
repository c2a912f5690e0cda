"""
Central registry of error codes for nodeboot.

Error codes follow the pattern: CATEGORY-ErrorName

Categories:
- VAL: Local validation errors (addresses, command tokens)
- CONF: Configuration resolution errors
- NET: Control endpoint communication errors
- CMD: Remote command errors
- LIFE: Process lifecycle (fork, service manager, runtime) errors
"""


class ErrorCodes:
    """Central registry of error codes for consistent error handling."""

    # Validation errors
    VAL_INVALID_HOST = "VAL-InvalidHost"
    VAL_INVALID_PORT = "VAL-InvalidPort"
    VAL_EMPTY_COMMAND = "VAL-EmptyCommand"

    # Configuration errors
    CONF_FILE_UNREADABLE = "CONF-FileUnreadable"
    CONF_INVALID_SYNTAX = "CONF-InvalidSyntax"
    CONF_INVALID_STRUCTURE = "CONF-InvalidStructure"
    CONF_UNKNOWN_OPTION = "CONF-UnknownOption"
    CONF_INVALID_VALUE = "CONF-InvalidValue"
    CONF_DATA_DIR_FAILED = "CONF-DataDirFailed"

    # Network errors
    NET_UNREACHABLE = "NET-Unreachable"
    NET_TIMEOUT = "NET-Timeout"
    NET_BAD_RESPONSE = "NET-BadResponse"

    # Remote command errors
    CMD_UNKNOWN = "CMD-Unknown"

    # Lifecycle errors
    LIFE_FORK_FAILED = "LIFE-ForkFailed"
    LIFE_SERVICE_INSTALL_FAILED = "LIFE-ServiceInstallFailed"
    LIFE_SERVICE_START_FAILED = "LIFE-ServiceStartFailed"
    LIFE_SERVICE_HOST_FAILED = "LIFE-ServiceHostFailed"
    LIFE_UNSUPPORTED_MODE = "LIFE-UnsupportedMode"
    LIFE_RUNTIME_LOAD_FAILED = "LIFE-RuntimeLoadFailed"

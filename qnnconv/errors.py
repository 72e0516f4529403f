class ConversionError(Exception):
    """Base class for every fatal condition the orchestrator reports."""

    exit_code = 1

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(ConversionError):
    pass


class ToolInvocationError(ConversionError):
    def __init__(self, tool: str, returncode: int | None, message: str | None = None):
        self.tool = tool
        self.returncode = returncode
        super().__init__(message or f"{tool} failed (rc={returncode})")


class OutputMissing(ConversionError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Expected output file not found: {path}")

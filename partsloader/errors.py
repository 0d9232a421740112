class PartsLoaderError(Exception):
    pass


class ConfigurationError(PartsLoaderError):
    pass


class MalformedInputError(PartsLoaderError):
    def __init__(self, message: str, *, path: str | None = None, line_number: int | None = None) -> None:
        self.path = path
        self.line_number = line_number
        if path is not None and line_number is not None:
            message = f"{path}:{line_number}: {message}"
        super().__init__(message)


class ScriptError(PartsLoaderError):
    pass

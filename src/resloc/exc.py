import typing as t


class ResolverError(Exception):
    """Super-type of all errors raised by resloc code"""

    def __init__(self, msg: str, code_space: str = "GEN", code_number: t.Optional[int] = None, is_recoverable: bool = False):
        self.internal_code = "" if code_number is None else f"{code_space}-{code_number}"
        super().__init__(f"{msg} [{self.internal_code}]")
        self.is_recoverable = is_recoverable


class HandleError(ResolverError):
    """Error class specifically for acquiring and using handles."""

    def __init__(self, msg, code, is_recoverable: bool = False):
        super().__init__(msg, "HANDLE", code, is_recoverable=is_recoverable)


class UnsupportedOperationError(ResolverError):
    """Raised when a Location backend cannot perform the requested operation."""

    def __init__(self, msg, code):
        super().__init__(msg, "LOCATION", code)

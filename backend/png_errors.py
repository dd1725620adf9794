from typing import Optional


class PngError(ValueError):
    """Base class for every structural or codec failure raised by pngmeta."""


class InvalidHeaderError(PngError):
    pass


class TruncatedDataError(PngError, EOFError):
    def __init__(self, message: str, offset: Optional[int] = None, chunk_type: Optional[str] = None):
        super().__init__(message)
        self.offset = offset
        self.chunk_type = chunk_type


class IntegrityError(PngError):
    def __init__(self, chunk_type: str, offset: int, expected: int, actual: int):
        super().__init__(
            f"CRC mismatch for chunk {chunk_type} at offset {offset}: "
            f"stored {actual:08X}, computed {expected:08X}"
        )
        self.chunk_type = chunk_type
        self.offset = offset
        self.expected = expected
        self.actual = actual


class MissingTerminatorError(PngError):
    pass


class InvalidChunkTypeError(PngError):
    pass


class InvalidKeywordError(PngError):
    pass


class InvalidCharsetError(PngError):
    pass


class KeywordCharsetError(InvalidKeywordError, InvalidCharsetError):
    """Keyword contains NUL or a character its chunk type cannot carry."""


class MissingSeparatorError(PngError):
    pass


class UnsupportedMethodError(PngError):
    def __init__(self, chunk_type: str, method: int):
        super().__init__(f"Unsupported compression method {method} in {chunk_type} chunk")
        self.chunk_type = chunk_type
        self.method = method


class MalformedStreamError(PngError):
    pass


class DecompressionLimitError(PngError):
    def __init__(self, message: str, limit: int):
        super().__init__(message)
        self.limit = limit


class InvalidLengthError(PngError):
    pass


class FieldRangeError(PngError):
    pass


class InvalidOperationError(PngError):
    pass

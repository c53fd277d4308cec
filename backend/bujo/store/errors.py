"""Document store error codes and the exception that carries them."""

INTERNAL_SERVER_ERROR = 1
OBJECT_NOT_FOUND = 101
INVALID_QUERY = 102
INVALID_CLASS_NAME = 103
INVALID_KEY_NAME = 105
INVALID_JSON = 107
OPERATION_FORBIDDEN = 119
SCRIPT_FAILED = 141

_HTTP_STATUS = {
    INTERNAL_SERVER_ERROR: 500,
    OBJECT_NOT_FOUND: 404,
    OPERATION_FORBIDDEN: 403,
}


class StoreError(Exception):
    """Raised anywhere in the store; rendered as ``{"code": ..., "error": ...}``."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self) -> int:
        return _HTTP_STATUS.get(self.code, 400)

    def to_dict(self) -> dict:
        return {"code": self.code, "error": self.message}

    def __repr__(self):
        return f"<StoreError {self.code}: {self.message}>"

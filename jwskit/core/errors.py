"""JWS exception taxonomy.

A failed signature check is not an error: verification returns ``False`` or a
rejected result. The exceptions below cover malformed input and misuse.
"""


class JOSEError(Exception):
    """Base JOSE exception."""

    pass


class FormatError(JOSEError):
    """Malformed Base64URL, segment count or JSON shape."""

    pass


class HeaderConflictError(JOSEError):
    """Same header parameter present in both protected and unprotected headers."""

    def __init__(self, keys: list[str]):
        self.keys = sorted(keys)
        super().__init__(
            f"Header parameters present in both protected and unprotected headers: {', '.join(self.keys)}"
        )


class UnsupportedAlgorithmError(JOSEError):
    """Algorithm not supported."""

    pass


class KeyAlgorithmMismatchError(JOSEError):
    """Key type does not match the algorithm family."""

    pass


class KeyImportError(JOSEError):
    """Key import failed."""

    pass

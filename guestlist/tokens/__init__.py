from .codec import IssuedToken, TokenCodec, as_utc

__all__ = [
    "IssuedToken",
    "TokenCodec",
    "as_utc",
]

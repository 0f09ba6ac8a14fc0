from typing import Union

# docker log chunks and exec output are utf-8 encoded
DEFAULT_ENCODING = "utf-8"


def to_str(obj: Union[str, bytes], encoding: str = DEFAULT_ENCODING, errors="strict") -> str:
    """Decodes container output, strings are returned unchanged."""
    return obj.decode(encoding, errors) if isinstance(obj, bytes) else obj


def to_bytes(obj: Union[str, bytes], encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encodes a log chunk, so chunks of text and binary streams can be buffered alike."""
    return obj.encode(encoding) if isinstance(obj, str) else obj

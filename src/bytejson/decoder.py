ESCAPE_MAP: dict[int, int] = {
    ord('"'): ord('"'),
    ord("\\"): ord("\\"),
    ord("/"): ord("/"),
    ord("b"): ord("\b"),
    ord("f"): ord("\f"),
    ord("n"): ord("\n"),
    ord("r"): ord("\r"),
    ord("t"): ord("\t"),
}

UNICODE_ESCAPE = ord("u")


def decode_escape(byte: int) -> int | None:
    r"""
    Map the byte following a backslash to the literal byte it stands for.
    Returns None for `\u` and for anything JSON does not define, the caller
    decides how to report it.
    """
    return ESCAPE_MAP.get(byte)


def decode_text(scratch: bytes | bytearray) -> str:
    # no UTF-8 validation: undecodable bytes are carried as lone surrogates
    return bytes(scratch).decode("utf-8", errors="surrogateescape")


def encode_text(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")

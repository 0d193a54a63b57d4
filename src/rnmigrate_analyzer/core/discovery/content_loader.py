from pathlib import Path


def load_source(path) -> bytes:
    # bytes, so byte offsets from the parser line up when the file is rewritten
    return Path(path).read_bytes()


def write_source(path, data: bytes) -> None:
    Path(path).write_bytes(data)

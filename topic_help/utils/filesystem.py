"""Filesystem helpers for reading help sources and writing exported indexes."""

import os


def normalize_path(path: str) -> str:
    """Return an absolute, normalised form of *path* for identity comparisons."""
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


def get_mtime(path: str) -> float:
    """Get the modification time of a file, or 0.0 if it cannot be stat'ed."""
    try:
        return os.stat(path).st_mtime
    except OSError:
        return 0.0


def read_text_file(path: str) -> str:
    """Read a help source as text.

    Sources are decoded as UTF-8; undecodable bytes are replaced rather
    than aborting the load, since legacy HTML manuals are often Latin-1.

    Raises:
        FileNotFoundError: If path does not exist.
        IsADirectoryError: If path is a directory.
        OSError: If the file cannot be read for other reasons.
    """
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def write_text_file(path: str, text: str) -> str:
    """Write *text* to *path*, creating parent directories. Returns the path."""
    path = os.path.abspath(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    return path


def default_url_prefix(path: str) -> str:
    """Return the ``file:`` URL prefix of the directory containing *path*.

    Used when a configured source has no explicit URL prefix, so relative
    links resolve against the document's own directory.
    """
    folder = os.path.dirname(normalize_path(path)).replace(os.sep, "/")
    if not folder.endswith("/"):
        folder += "/"
    return "file:" + folder

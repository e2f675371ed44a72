"""Resolve possibly-relative links found in help sources against a base prefix."""

import posixpath
import re


_ABSOLUTE_RE = re.compile(r"^(?:https?|ftp|file|mailto):", re.IGNORECASE)
# Also splits a drive letter ("C:") off a Windows path prefix, so ".."
# never climbs above the drive root.
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*:)(.*)$", re.DOTALL)


def is_absolute_link(link: str) -> bool:
    return bool(_ABSOLUTE_RE.match(link))


def _strip_dot_slash(link: str) -> str:
    return link[2:] if link.startswith("./") else link


def canonicalize(path: str) -> str:
    """Resolve ``.`` and ``..`` segments using POSIX path rules.

    A trailing slash is kept so directory prefixes stay directories.
    """
    if not path:
        return path
    result = posixpath.normpath(path)
    if path.endswith("/") and not result.endswith("/"):
        result += "/"
    return result


def resolve_link(link: str, prefix: str = "", document_name: str = "",
                 expand: bool = False) -> str:
    """Turn *link* into an absolute link.

    Args:
        link: The link as written in the source (``#frag``, ``./a.html``, ...).
        prefix: Base URL the source document lives under.
        document_name: File name of the source document, used for
            same-document ``#fragment`` links.
        expand: Also canonicalise ``..`` / ``.`` segments. The scheme is
            split off *prefix* first and reattached afterwards.

    Returns:
        The resolved link. Absolute links are returned unchanged; nothing
        here raises.
    """
    if is_absolute_link(link):
        return link

    if not expand:
        if link.startswith("#"):
            return prefix + document_name + link
        return prefix + _strip_dot_slash(link)

    scheme = ""
    m = _SCHEME_RE.match(prefix)
    if m:
        scheme, prefix = m.group(1), m.group(2)
    link = _strip_dot_slash(link)
    if link.startswith("#"):
        resolved = canonicalize(prefix + document_name) + link
    else:
        resolved = canonicalize(prefix + link)
    return scheme + resolved

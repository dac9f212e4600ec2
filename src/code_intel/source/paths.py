"""Project-relative path arithmetic shared by import resolution."""

import posixpath
from typing import Iterable, Optional

SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith("./") or specifier.startswith("../") or specifier in (".", "..")


def join_relative(importer: str, specifier: str) -> Optional[str]:
    """Resolve ``specifier`` against the directory of ``importer``.

    Both are POSIX paths relative to the project root. Returns None when
    the ``../`` segments climb above the root.
    """
    base = posixpath.dirname(importer)
    joined = posixpath.normpath(posixpath.join(base, specifier))
    if joined == ".." or joined.startswith("../"):
        return None
    return "" if joined == "." else joined


def script_candidates(path: str, default_extension: str = ".ts") -> list[str]:
    """Files a resolved script specifier may refer to, in probe order."""
    candidates: list[str] = []
    _, ext = posixpath.splitext(path)
    if ext in SCRIPT_EXTENSIONS:
        candidates.append(path)
        # compiled-output style specifiers: "./x.js" written in a .ts project
        if ext in (".js", ".jsx", ".mjs", ".cjs"):
            stem = path[: -len(ext)]
            candidates.extend([stem + ".ts", stem + ".tsx"])
        return candidates

    extensions = [default_extension] + [e for e in SCRIPT_EXTENSIONS if e != default_extension]
    if path:
        candidates.append(path)
        candidates.extend(path + e for e in extensions)
    prefix = f"{path}/" if path else ""
    candidates.extend(f"{prefix}index{e}" for e in extensions)
    return candidates


def first_existing(candidates: Iterable[str], known_files) -> Optional[str]:
    for candidate in candidates:
        if candidate in known_files:
            return candidate
    return None


def directory_depth(path: str, ancestor: str) -> Optional[int]:
    """Number of directory levels between ``ancestor`` and ``path``'s directory.

    Returns None when ``path`` is not under ``ancestor``.
    """
    directory = posixpath.dirname(path)
    if not ancestor:
        return 0 if not directory else directory.count("/") + 1
    if directory == ancestor:
        return 0
    if not directory.startswith(ancestor + "/"):
        return None
    return directory[len(ancestor) + 1:].count("/") + 1

"""
Pure path helpers: directory/name splitting, URI encoding, MIME lookup and
temporary directory naming.
"""

from typing import Tuple
from urllib.parse import quote
import mimetypes
import posixpath
import uuid

# Characters encodeURI leaves untouched besides letters, digits and "-_.~"
URI_SAFE_CHARS = ";,/?:@&=+$!*'()#"

PLAIN_TEXT = "text/plain"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

WHITE_FILENAME_CONTENT_TYPES = {
    "license": PLAIN_TEXT,
    "readme": PLAIN_TEXT,
    "history": PLAIN_TEXT,
    "changelog": PLAIN_TEXT,
    ".npmignore": PLAIN_TEXT,
    ".jshintignore": PLAIN_TEXT,
    ".eslintignore": PLAIN_TEXT,
    ".jshintrc": "application/json",
    ".eslintrc": "application/json",
}


def get_directory_and_name(path: str) -> Tuple[str, str]:
    """
    Split a normalized file path into directory and base name.

    >>> get_directory_and_name("/dir/sub/file.js")
    ('/dir/sub', 'file.js')
    >>> get_directory_and_name("/a.txt")
    ('/', 'a.txt')
    """
    return posixpath.dirname(path), posixpath.basename(path)


def encode_dist_path(path: str) -> str:
    """
    Percent-encode a file path so it can be stored as an ASCII dist key.

    '/resource/ToOneFromχ.js' => '/resource/ToOneFrom%CF%87.js'
    """
    return quote(path, safe=URI_SAFE_CHARS, encoding="utf-8")


def mime_lookup(path: str) -> str:
    """Content type for a file path, based on its extension or well-known name."""
    filename = posixpath.basename(path).lower()
    if filename.endswith(".ts") or filename.endswith(".lock"):
        return PLAIN_TEXT
    content_type, _ = mimetypes.guess_type(filename, strict=False)
    return content_type or WHITE_FILENAME_CONTENT_TYPES.get(filename) or DEFAULT_CONTENT_TYPE


def temp_dir_name(fullname: str, version: str) -> str:
    """Unique working directory name for one sync of a package version."""
    return f"unpkg_{fullname.replace('/', '_')}@{version}_{uuid.uuid4()}"

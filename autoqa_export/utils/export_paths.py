"""File naming and path safety for exported tests.

Nothing returned for display or logging may contain an absolute path.
"""

import logging
import os
import posixpath
import re
from typing import Optional

from autoqa_export.config import ENV_HELPER_PATH, EXPORT_DIR, MAX_FILE_NAME_LENGTH

logger = logging.getLogger(__name__)

EXPORT_FILE_SUFFIX = ".spec.ts"

_UNSAFE_PATH_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
_PATH_TRAVERSAL = re.compile(r"\.\.")
_MULTIPLE_SEPARATORS = re.compile(r"[\\/]+")
_LEADING_DOTS = re.compile(r"^\.+")
_EDGE_UNDERSCORES = re.compile(r"^_+|_+$")
_MARKDOWN_SUFFIX = re.compile(r"\.md$", re.IGNORECASE)


def sanitize_path_segment(segment: Optional[str]) -> str:
    """Make ``segment`` safe to use as a single file or directory name."""
    if not segment:
        return "unknown"

    sanitized = _UNSAFE_PATH_CHARS.sub("", segment)
    sanitized = _PATH_TRAVERSAL.sub("", sanitized)
    sanitized = _MULTIPLE_SEPARATORS.sub("_", sanitized)
    sanitized = _LEADING_DOTS.sub("", sanitized)
    sanitized = _EDGE_UNDERSCORES.sub("", sanitized)
    sanitized = sanitized[:MAX_FILE_NAME_LENGTH]
    return sanitized or "unknown"


def _is_within(path: str, root: str) -> bool:
    path = os.path.abspath(path)
    root = os.path.abspath(root)
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def generate_export_file_name(spec_path: str, cwd: str) -> str:
    """Deterministic ``.spec.ts`` name for a spec.

    ``specs/saucedemo-01-login.md`` -> ``specs-saucedemo-01-login.spec.ts``
    """
    absolute_spec = os.path.join(cwd, spec_path)
    if _is_within(absolute_spec, cwd):
        relative_path = os.path.relpath(os.path.abspath(absolute_spec), os.path.abspath(cwd))
    else:
        relative_path = os.path.basename(spec_path)

    flattened = _MULTIPLE_SEPARATORS.sub("-", _MARKDOWN_SUFFIX.sub("", relative_path))
    return f"{sanitize_path_segment(flattened)}{EXPORT_FILE_SUFFIX}"


def get_export_dir(cwd: str, export_dir: Optional[str] = None) -> str:
    return os.path.abspath(os.path.join(cwd, export_dir or EXPORT_DIR))


def get_export_path(cwd: str, spec_path: str, export_dir: Optional[str] = None) -> str:
    return os.path.join(get_export_dir(cwd, export_dir), generate_export_file_name(spec_path, cwd))


def get_relative_export_path(cwd: str, spec_path: str, export_dir: Optional[str] = None) -> str:
    return to_safe_relative_path(get_export_path(cwd, spec_path, export_dir), cwd)


def ensure_export_dir(cwd: str, export_dir: Optional[str] = None) -> str:
    directory = get_export_dir(cwd, export_dir)
    os.makedirs(directory, exist_ok=True)
    logger.debug(f"Export directory ready: {to_safe_relative_path(directory, cwd)}")
    return directory


def to_safe_relative_path(absolute_path: str, cwd: str) -> str:
    """Path relative to ``cwd`` with forward slashes, or just the file name."""
    if _is_within(absolute_path, cwd):
        relative = os.path.relpath(os.path.abspath(absolute_path), os.path.abspath(cwd))
        return relative.replace(os.sep, "/")

    match = re.search(r"[^/\\]+\.spec\.ts$", absolute_path)
    if match:
        return match.group(0)
    return f"[redacted]{EXPORT_FILE_SUFFIX}"


def get_env_helper_import_path(cwd: str, export_dir: Optional[str] = None) -> str:
    """TS import specifier for the env helper, relative to the export directory."""
    helper_path = os.path.abspath(os.path.join(cwd, ENV_HELPER_PATH))
    relative = os.path.relpath(helper_path, get_export_dir(cwd, export_dir)).replace(os.sep, "/")
    relative = re.sub(r"\.ts$", "", relative)
    if relative.startswith("../"):
        return relative
    return f"./{posixpath.normpath(relative)}"

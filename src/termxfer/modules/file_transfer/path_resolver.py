"""Remote path resolution against a tracked working directory."""

import logging
import posixpath
from collections.abc import Callable

from .exceptions import NoSuchFileOrDirectoryError, UninitializedSessionError

logger = logging.getLogger(__name__)


class PathResolver:
    """Turn user-supplied remote paths into absolute remote paths.

    Two modes:
    - strict: relative paths must canonicalize on the server, otherwise
      NoSuchFileOrDirectoryError. Used for navigation, listing and downloads.
    - best-effort: if canonicalization fails the joined path is returned as is.
      Used for upload and mkdir destinations, which usually do not exist yet.
      A genuinely invalid destination is then reported by the operation
      itself (FileCreateDeniedError) instead of by the resolver.

    Absolute inputs are returned unchanged in both modes; existence is
    discovered by whatever operation uses the path next.
    """

    def __init__(
        self,
        realpath: Callable[[str], str],
        working_dir: Callable[[], str | None],
    ):
        """
        Args:
            realpath: Server-side canonicalization (raises OSError on failure)
            working_dir: Returns the current working directory, None if disconnected
        """
        self._realpath = realpath
        self._working_dir = working_dir

    def _join(self, path: str) -> tuple[str, bool]:
        wrkdir = self._working_dir()
        if wrkdir is None:
            raise UninitializedSessionError()
        path = path or "."
        if posixpath.isabs(path):
            return path, False
        return posixpath.join(wrkdir, path), True

    def resolve_strict(self, path: str) -> str:
        """Resolve ``path``; relative paths must exist on the remote side.

        Raises:
            UninitializedSessionError: No active session
            NoSuchFileOrDirectoryError: Canonicalization failed
        """
        joined, relative = self._join(path)
        if not relative:
            return joined
        try:
            return self._realpath(joined)
        except OSError as e:
            raise NoSuchFileOrDirectoryError(f"No such file or directory: {joined}") from e

    def resolve_best_effort(self, path: str) -> str:
        """Resolve ``path``, falling back to the plain join on failure.

        Raises:
            UninitializedSessionError: No active session
        """
        joined, relative = self._join(path)
        if not relative:
            return joined
        try:
            return self._realpath(joined)
        except OSError:
            logger.debug(f"Could not canonicalize {joined}, using it as is")
            return joined

"""Storage backends for the content repository.

The backend is chosen once, when the repository is built, from the
profile's mode flag: the local tree in development, the remote
repository otherwise.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import DEFAULT_CONTENT_ROOT, Profile
from .base import Backend
from .local import LocalBackend
from .remote import RemoteBackend


def create_backend(
    profile: Profile,
    debug: bool = False,
    console: Optional[Console] = None,
    local_mode: Optional[bool] = None,
) -> Backend:
    """Create the backend a profile selects.

    Args:
        profile: Configuration profile
        debug: Enable debug output
        console: Console for debug output
        local_mode: Override the profile's mode flag

    Returns:
        A LocalBackend or a RemoteBackend
    """
    use_local = profile.local_mode if local_mode is None else local_mode

    if use_local:
        root = Path(profile.local_root) if profile.local_root else Path.cwd() / (profile.content_root or DEFAULT_CONTENT_ROOT)
        return LocalBackend(root, debug=debug, console=console)

    return RemoteBackend.from_profile(profile, debug=debug, console=console)


__all__ = [
    "Backend",
    "LocalBackend",
    "RemoteBackend",
    "create_backend",
]

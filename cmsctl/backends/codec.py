"""Document file encoding shared by the backends.

Files are UTF-8 JSON objects with 2-space indentation and a trailing
newline. Revisions are git blob SHA-1 hashes, so a local file and the
same bytes in the remote repository carry the same revision.
"""

import hashlib
import json
from typing import Any, Dict


def encode_document(body: Dict[str, Any]) -> bytes:
    """Serialize a document body to the bytes stored in the repository."""
    return (json.dumps(body, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def decode_document(raw: bytes) -> Dict[str, Any]:
    """Parse stored bytes back into a document body.

    Raises:
        ValueError: If the bytes are not a UTF-8 JSON object
    """
    data = json.loads(raw.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def git_blob_sha(raw: bytes) -> str:
    """SHA-1 git assigns to a blob with these bytes."""
    header = f"blob {len(raw)}\0".encode("ascii")
    return hashlib.sha1(header + raw).hexdigest()

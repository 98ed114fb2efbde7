from typing import Dict

DEFAULT_MEDIA_TYPE = "application/octet-stream"

# Keys are lower-case extensions without the leading dot.
MEDIA_TYPES: Dict[str, str] = {
    "html": "text/html",
    "htm": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "pom": "application/xml",
    "jar": "application/java-archive",
    "war": "application/java-archive",
    "ear": "application/java-archive",
    # Gradle module metadata
    "module": "application/json",
    "txt": "text/plain",
    "md5": "text/plain",
    "sha1": "text/plain",
    "sha256": "text/plain",
    "sha512": "text/plain",
    "asc": "text/plain",
    "yml": "application/yaml",
    "yaml": "application/yaml",
    "zip": "application/zip",
}


def media_type_for(name: str) -> str:
    """
    Infer a media type from a file name's extension.

    Only the extension is consulted, never the content. Unknown or missing
    extensions map to the generic binary type.
    """
    base = (name or "").rsplit("/", 1)[-1]
    if "." not in base:
        return DEFAULT_MEDIA_TYPE
    ext = base.rsplit(".", 1)[-1].lower()
    return MEDIA_TYPES.get(ext, DEFAULT_MEDIA_TYPE)

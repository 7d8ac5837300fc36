"""
Fixed names shared by the schema builder and the reference resolver.
"""

# Component path prefix used by "$ref" values and discriminator mappings
COMPONENT_SCHEMA_PATH = "#/components/schemas/"

# Discriminated variants are published under "<prefix><ReferenceId>"
DISCRIMINATED_PREFIX = "Discriminated"

# Transient self-reference marker emitted while a type is being walked
SELF_REFERENCE_ID = "#"

DEFAULT_DISCRIMINATOR_PROPERTY = "$type"

DEFAULT_DOCUMENT_NAME = "v1"

JSON_CONTENT_TYPE = "application/json"
OCTET_STREAM_CONTENT_TYPE = "application/octet-stream"
MULTIPART_FORM_CONTENT_TYPE = "multipart/form-data"


def component_path(reference_id: str) -> str:
    return f"{COMPONENT_SCHEMA_PATH}{reference_id}"


def discriminated_reference_id(reference_id: str) -> str:
    return f"{DISCRIMINATED_PREFIX}{reference_id}"

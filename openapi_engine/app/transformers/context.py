from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from openapi_engine.app.schemas.operations import OperationDescription


class SchemaTransformerContext(BaseModel):
    """
    Context handed to a schema transformer for one cached schema.
    """

    document_name: str = Field(..., description="Name of the document being generated")

    type: Any = Field(..., description="Python type the schema was generated for")

    parameter: Optional[Any] = Field(
        None,
        description="ParameterContext of the binding site, when the schema is binding-specific",
    )

    application_services: Optional[Any] = Field(
        None,
        description="Services supplied by the hosting application",
    )

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class DocumentTransformerContext(BaseModel):
    """
    Context handed to a document transformer once references are resolved.
    """

    document_name: str

    operations: List[OperationDescription] = Field(default_factory=list)

    application_services: Optional[Any] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

"""Request bodies for the story graph."""

from typing import Optional

from pydantic import Field, field_validator, model_validator

from openwrite.schemas.base import CamelModel, json_text, not_null, require_text, whole_number
from openwrite.schemas.enums import ConnectionType, GraphNodeType, StoryElementType


class GraphNodeCreate(CamelModel):
    node_type: GraphNodeType
    sub_type: Optional[str] = None
    title: str = Field(..., max_length=300)
    description: Optional[str] = None
    position_x: float = 0
    position_y: float = 0
    visual_properties: Optional[str] = None
    metadata: Optional[str] = None

    check_title = field_validator("title")(require_text)
    check_json = field_validator("visual_properties", "metadata")(json_text)
    check_position = field_validator("position_x", "position_y")(whole_number)

    @model_validator(mode="after")
    def check_sub_type(self):
        if self.node_type == GraphNodeType.STORY_ELEMENT.value and self.sub_type is not None:
            allowed = [member.value for member in StoryElementType]
            if self.sub_type not in allowed:
                raise ValueError(f"subType must be one of {', '.join(allowed)} for story elements")
        return self


class GraphNodeUpdate(CamelModel):
    node_type: Optional[GraphNodeType] = None
    sub_type: Optional[str] = None
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None
    visual_properties: Optional[str] = None
    metadata: Optional[str] = None

    check_title = field_validator("title")(require_text)
    check_required = field_validator("node_type", "position_x", "position_y")(not_null)
    check_json = field_validator("visual_properties", "metadata")(json_text)
    check_position = field_validator("position_x", "position_y")(whole_number)


class NodePosition(CamelModel):
    position_x: float
    position_y: float

    check_position = field_validator("position_x", "position_y")(whole_number)


class TextBlockCreate(CamelModel):
    content: Optional[str] = None
    order_index: int = 0


class TextBlockUpdate(CamelModel):
    content: Optional[str] = None
    order_index: Optional[int] = None

    check_required = field_validator("order_index")(not_null)


class GraphConnectionCreate(CamelModel):
    source_node_id: str
    target_node_id: str
    connection_type: ConnectionType
    connection_strength: int = Field(1, ge=1, le=5)
    visual_properties: Optional[str] = None
    metadata: Optional[str] = None

    check_json = field_validator("visual_properties", "metadata")(json_text)


class GraphConnectionUpdate(CamelModel):
    source_node_id: Optional[str] = None
    target_node_id: Optional[str] = None
    connection_type: Optional[ConnectionType] = None
    connection_strength: Optional[int] = Field(None, ge=1, le=5)
    visual_properties: Optional[str] = None
    metadata: Optional[str] = None

    check_required = field_validator(
        "source_node_id", "target_node_id", "connection_type", "connection_strength")(not_null)
    check_json = field_validator("visual_properties", "metadata")(json_text)

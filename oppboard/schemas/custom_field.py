"""Custom field definition schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FieldModel = Literal["opportunity", "contact"]


class FolderOut(BaseModel):
    id: str
    name: str
    position: int = 0


class CustomFieldOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    field_key: str = Field("", alias="fieldKey")
    data_type: str = Field("", alias="dataType")
    placeholder: str = ""
    position: int = 0
    picklist_options: list[Any] = Field(default_factory=list, alias="picklistOptions")
    picklist_image_options: list[Any] = Field(default_factory=list, alias="picklistImageOptions")
    allow_custom_option: bool = Field(False, alias="allowCustomOption")
    is_multi_file_allowed: bool = Field(False, alias="isMultiFileAllowed")
    max_file_limit: int = Field(0, alias="maxFileLimit")
    is_required: bool = Field(False, alias="isRequired")
    model: FieldModel = "opportunity"
    parent_id: str = Field("", alias="parentId")
    parent_name: str = Field("", alias="parentName")


class CustomFieldsView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    custom_fields: list[CustomFieldOut] = Field(default_factory=list, alias="customFields")
    folders: list[FolderOut] = Field(default_factory=list)

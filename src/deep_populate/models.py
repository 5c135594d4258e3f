from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

UPLOAD_FILE_UID = "plugin::upload.file"
ADMIN_USER_UID = "admin::user"


class ScalarAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["scalar"] = "scalar"
    kind: str = "string"


class ComponentAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["component"] = "component"
    target: str
    repeatable: bool = False


class DynamicZoneAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["dynamiczone"] = "dynamiczone"
    targets: tuple[str, ...]


class RelationAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["relation"] = "relation"
    target: str
    relation: str = "oneToOne"

    @property
    def to_many(self) -> bool:
        return self.relation.endswith("ToMany")


class MediaAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["media"] = "media"
    multiple: bool = False


AttributeSpec = Annotated[
    ScalarAttribute | ComponentAttribute | DynamicZoneAttribute | RelationAttribute | MediaAttribute,
    Field(discriminator="variant"),
]


class ModelSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    uid: str
    collection_name: str
    kind: Literal["collectionType", "singleType", "component"] = "collectionType"
    singular_name: str = ""
    plural_name: str = ""
    attributes: dict[str, AttributeSpec] = Field(default_factory=dict)

    @property
    def is_content_type(self) -> bool:
        return self.kind != "component"


def parse_attribute(raw: dict[str, Any]) -> AttributeSpec:
    """Map a Strapi-style attribute definition onto its variant."""
    kind = str(raw.get("type", "string"))
    if kind == "component":
        return ComponentAttribute(target=raw["component"], repeatable=bool(raw.get("repeatable", False)))
    if kind == "dynamiczone":
        return DynamicZoneAttribute(targets=tuple(raw.get("components", ())))
    if kind == "relation":
        if not raw.get("target"):
            # morph relations have no single target to plan against
            return ScalarAttribute(kind=str(raw.get("relation", "morph")))
        return RelationAttribute(target=raw["target"], relation=str(raw.get("relation", "oneToOne")))
    if kind == "media":
        return MediaAttribute(multiple=bool(raw.get("multiple", False)))
    return ScalarAttribute(kind=kind)


def parse_model_schema(uid: str, raw: dict[str, Any]) -> ModelSchema:
    """Build a ``ModelSchema`` from a ``schema.json`` style document."""
    info = raw.get("info") or {}
    kind = raw.get("kind", "component" if "::" not in uid else "collectionType")
    collection_name = raw.get("collectionName") or uid.rsplit(".", 1)[-1]
    return ModelSchema(
        uid=uid,
        collection_name=collection_name,
        kind=kind,
        singular_name=info.get("singularName", ""),
        plural_name=info.get("pluralName", ""),
        attributes={name: parse_attribute(attr) for name, attr in (raw.get("attributes") or {}).items()},
    )

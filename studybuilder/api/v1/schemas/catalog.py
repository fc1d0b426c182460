"""Block catalog API schemas."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from studybuilder.api.v1.schemas.common import CamelModel


class CatalogMetadata(CamelModel):
    category: str
    complexity: str
    estimated_duration: int = Field(..., description="Minutes")
    tags: List[str] = Field(default_factory=list)
    version: str


class CatalogUsage(CamelModel):
    usage_count: int = 0
    popularity: float = 0.0
    rating: float = 0.0
    study_types: List[str] = Field(default_factory=list)


class CatalogCustomization(CamelModel):
    allow_customization: bool = True
    customizable_fields: List[str] = Field(default_factory=list)


class BlockCatalogEntry(CamelModel):
    """One block type as offered in the block library."""
    
    id: str
    name: str
    description: str
    category: str
    block_type: str
    default_settings: Dict[str, Any] = Field(default_factory=dict)
    metadata: CatalogMetadata
    usage: CatalogUsage
    customization: CatalogCustomization
    
    model_config = {"json_schema_extra": {
        "example": {
            "id": "catalog_welcome",
            "name": "Welcome Screen",
            "description": "Study introduction and participant onboarding",
            "category": "display",
            "blockType": "welcome",
            "defaultSettings": {"title": "Welcome to our study"},
            "metadata": {
                "category": "display",
                "complexity": "simple",
                "estimatedDuration": 1,
                "tags": ["intro"],
                "version": "1.0.0",
            },
            "usage": {"usageCount": 1250, "popularity": 95, "rating": 4.8, "studyTypes": ["usability"]},
            "customization": {"allowCustomization": True, "customizableFields": ["title"]},
        }
    }}


class BlockCatalogListResponse(CamelModel):
    blocks: List[BlockCatalogEntry]
    total: int
    study_type: Optional[str] = None

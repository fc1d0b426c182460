"""Block catalog - the immutable registry of block types and study-type rules.

The catalog is built once (usually by YamlCatalogSource) and injected into
the instantiator, validation engine and builder session. Nothing in this
module holds global state.
"""

import copy
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from studybuilder.domain.study.errors import UnknownBlockType
from studybuilder.domain.study.models import (
    Block,
    BlockType,
    Complexity,
    StudyType,
    new_block_id,
)
from studybuilder.domain.study.types import ValidationIssue, ValidationIssueCode


# Top-level block fields that can be customized besides settings keys.
BLOCK_FIELDS = frozenset({"name", "description", "estimated_duration", "is_required"})


@dataclass(frozen=True)
class BlockUsage:
    usage_count: int = 0
    popularity: float = 0.0
    rating: float = 0.0
    study_types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BlockDefinition:
    """Catalog entry for one block type."""

    type: BlockType
    display_name: str
    description: str
    category: str
    estimated_duration: int  # minutes
    complexity: Complexity = Complexity.SIMPLE
    default_settings: Mapping[str, Any] = field(default_factory=dict)
    customizable_fields: Tuple[str, ...] = ()
    allow_customization: bool = True
    requires_description: bool = False
    tags: Tuple[str, ...] = ()
    usage: BlockUsage = field(default_factory=BlockUsage)
    version: str = "1.0.0"

    @property
    def id(self) -> str:
        return f"catalog_{self.type.value}"

    def copy_default_settings(self) -> Dict[str, Any]:
        """Deep copy of the defaults, safe to mutate."""
        return copy.deepcopy(dict(self.default_settings))

    def to_catalog_entry(self) -> Dict[str, Any]:
        """Render the template-catalog wire shape."""
        return {
            "id": self.id,
            "name": self.display_name,
            "description": self.description,
            "category": self.category,
            "blockType": self.type.value,
            "defaultSettings": self.copy_default_settings(),
            "metadata": {
                "category": self.category,
                "complexity": self.complexity.value,
                "estimatedDuration": self.estimated_duration,
                "tags": list(self.tags),
                "version": self.version,
            },
            "usage": {
                "usageCount": self.usage.usage_count,
                "popularity": self.usage.popularity,
                "rating": self.usage.rating,
                "studyTypes": list(self.usage.study_types),
            },
            "customization": {
                "allowCustomization": self.allow_customization,
                "customizableFields": list(self.customizable_fields),
            },
        }


@dataclass(frozen=True)
class StudyTypeRules:
    """Structural constraints declared for one study type."""

    study_type: StudyType
    display_name: str = ""
    min_blocks: int = 1
    max_blocks: Optional[int] = None
    allowed_blocks: Optional[Tuple[BlockType, ...]] = None  # None means every type
    forbidden_blocks: Tuple[BlockType, ...] = ()
    must_start_with: Optional[BlockType] = None
    must_end_with: Optional[BlockType] = None
    recording_recommended: bool = False
    default_blocks: Tuple[BlockType, ...] = ()

    def allows(self, block_type: BlockType) -> bool:
        if block_type in self.forbidden_blocks:
            return False
        if self.allowed_blocks is None:
            return True
        return block_type in self.allowed_blocks


class BlockCatalog:
    """Immutable registry of block definitions and study-type rules.

    Usage:
        catalog = BlockCatalog(definitions, rules)
        definition = catalog.lookup(BlockType.WELCOME)
        block = catalog.create_block("open_question", name="Tell us more")
    """

    def __init__(
        self,
        definitions: Iterable[BlockDefinition],
        study_types: Iterable[StudyTypeRules] = (),
    ):
        ordered: Dict[BlockType, BlockDefinition] = {}
        for definition in definitions:
            if definition.type in ordered:
                raise ValueError(f"Block type '{definition.type.value}' defined twice")
            ordered[definition.type] = definition
        self._definitions = MappingProxyType(ordered)
        self._rules = MappingProxyType({r.study_type: r for r in study_types})

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, block_type: object) -> bool:
        try:
            return BlockType.parse(block_type) in self._definitions
        except UnknownBlockType:
            return False

    def lookup(self, block_type: Any) -> BlockDefinition:
        """Get the definition for a block type.

        Raises:
            UnknownBlockType: outside the closed set or not registered here
        """
        parsed = BlockType.parse(block_type)
        definition = self._definitions.get(parsed)
        if definition is None:
            raise UnknownBlockType(parsed.value)
        return definition

    def definitions(self) -> List[BlockDefinition]:
        return list(self._definitions.values())

    def block_types(self) -> List[BlockType]:
        return list(self._definitions.keys())

    def entries(self) -> List[Dict[str, Any]]:
        """All definitions in the template-catalog wire shape."""
        return [d.to_catalog_entry() for d in self._definitions.values()]

    def list_by_category(self, category: str) -> List[BlockDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    # ------------------------------------------------------------------
    # Study types
    # ------------------------------------------------------------------

    def study_type_rules(self, study_type: Any) -> StudyTypeRules:
        """Rules for a study type; undeclared types get permissive defaults."""
        parsed = StudyType(study_type)
        return self._rules.get(parsed) or StudyTypeRules(study_type=parsed)

    def study_types(self) -> List[StudyTypeRules]:
        return list(self._rules.values())

    def list_for_study_type(self, study_type: Any) -> List[BlockDefinition]:
        """Definitions usable in a study type, in catalog order."""
        rules = self.study_type_rules(study_type)
        return [d for d in self._definitions.values() if rules.allows(d.type)]

    # ------------------------------------------------------------------
    # Customization
    # ------------------------------------------------------------------

    def check_customization(
        self,
        block_type: Any,
        changes: Mapping[str, Any],
        scope: str = "draft",
    ) -> List[ValidationIssue]:
        """Report changes that touch fields the catalog does not let users customize.

        ``changes`` may carry top-level block fields and a nested ``settings`` dict.
        Only name, description, duration and required flag are block fields; every
        other customizable key is a setting and must be passed under ``settings``.
        """
        definition = self.lookup(block_type)
        issues: List[ValidationIssue] = []
        allowed = set(definition.customizable_fields)

        def reject(key: str, message: str) -> None:
            issues.append(ValidationIssue(
                code=ValidationIssueCode.FIELD_NOT_CUSTOMIZABLE,
                message=message,
                scope=scope,
                field=key,
            ))

        for key in changes:
            if key == "settings":
                continue
            if key not in BLOCK_FIELDS:
                reject(key, f"'{key}' is not a block field; pass it under settings")
            elif not definition.allow_customization or key not in allowed:
                reject(key, f"'{key}' cannot be customized on {definition.display_name} blocks")

        for key in changes.get("settings") or {}:
            if not definition.allow_customization or key not in allowed:
                reject(key, f"'{key}' cannot be customized on {definition.display_name} blocks")
        return issues

    # ------------------------------------------------------------------
    # Block helpers
    # ------------------------------------------------------------------

    def create_block(self, block_type: Any, **overrides: Any) -> Block:
        """Create a fresh block with catalog defaults.

        ``settings`` in overrides is merged over the default settings; other
        keys replace block fields.
        """
        definition = self.lookup(block_type)
        settings = definition.copy_default_settings()
        settings.update(copy.deepcopy(overrides.pop("settings", {}) or {}))
        values: Dict[str, Any] = {
            "id": new_block_id(),
            "type": definition.type,
            "name": definition.display_name,
            "description": definition.description,
            "estimated_duration": definition.estimated_duration,
            "settings": settings,
            "template_id": definition.id,
        }
        values.update(overrides)
        return Block(**values)

    def estimated_duration(self, blocks: Iterable[Any]) -> int:
        """Total catalog-estimated minutes for a sequence of blocks or block types."""
        total = 0
        for item in blocks:
            block_type = item.type if isinstance(item, Block) else item
            total += self.lookup(block_type).estimated_duration
        return total

    def complexity_stats(self, blocks: Iterable[Any]) -> Dict[str, int]:
        stats = {c.value: 0 for c in Complexity}
        for item in blocks:
            block_type = item.type if isinstance(item, Block) else item
            stats[self.lookup(block_type).complexity.value] += 1
        return stats


def seconds_to_minutes(seconds: float) -> int:
    """Convert a per-block estimate in seconds to whole minutes (at least 1)."""
    return max(1, int(math.ceil(seconds / 60.0)))

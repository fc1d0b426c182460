"""Template instantiation.

Turns a StudyTemplate plus variable bindings into a concrete OrderedBlockList.
Markers look like ``[KEY]`` and are replaced inside block names,
descriptions and every string nested in settings.
"""

import copy
import logging
import re
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from studybuilder.domain.study.block_list import OrderedBlockList
from studybuilder.domain.study.catalog import BlockCatalog
from studybuilder.domain.study.errors import MissingRequiredVariable
from studybuilder.domain.study.models import (
    Block,
    StudyDraft,
    StudyTemplate,
    TemplateBlock,
    TemplateMetadata,
    TemplateVariable,
    new_block_id,
)


logger = logging.getLogger(__name__)

# Settings keys that can name a block when the template gives no name.
NAME_SOURCE_KEYS = ("title", "question")

MARKER_PATTERN = re.compile(r"\[([A-Za-z][A-Za-z0-9_]*)\]")


def substitute(value: Any, values: Mapping[str, str]) -> Any:
    """Replace [key] markers in every string inside value.

    Lists and dicts are rebuilt recursively; other values are returned as-is.
    """
    if isinstance(value, str):
        return MARKER_PATTERN.sub(lambda m: values.get(m.group(1), m.group(0)), value)
    if isinstance(value, dict):
        return {k: substitute(v, values) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute(v, values) for v in value]
    return copy.deepcopy(value)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class TemplateInstantiator:
    """Instantiate templates against a block catalog.

    Usage:
        instantiator = TemplateInstantiator(catalog)
        blocks = instantiator.instantiate(template, {"PRODUCT": "Acme Notes"})
    """

    def __init__(
        self,
        catalog: BlockCatalog,
        id_factory: Callable[[], str] = new_block_id,
    ):
        self.catalog = catalog
        self._new_id = id_factory

    def resolve_bindings(
        self,
        template: StudyTemplate,
        bindings: Mapping[str, str],
    ) -> Dict[str, str]:
        """Resolve the value of every declared variable.

        Raises:
            MissingRequiredVariable: required variable unbound or blank
        """
        declared = {v.key for v in template.variables}
        ignored = sorted(k for k in bindings if k not in declared)
        if ignored:
            logger.warning(
                f"Ignoring bindings with no matching variable in template "
                f"'{template.id}': {', '.join(ignored)}"
            )

        resolved: Dict[str, str] = {}
        for variable in template.variables:
            bound = bindings.get(variable.key)
            if _is_blank(bound):
                if variable.required:
                    raise MissingRequiredVariable(variable.key, template.id)
                resolved[variable.key] = variable.default_value or ""
            else:
                resolved[variable.key] = str(bound)
        return resolved

    def _build_block(
        self,
        template: StudyTemplate,
        template_block: TemplateBlock,
        values: Mapping[str, str],
        order: int,
    ) -> Block:
        definition = self.catalog.lookup(template_block.type)

        settings = definition.copy_default_settings()
        settings.update(copy.deepcopy(template_block.settings))
        settings = substitute(settings, values)

        name = template_block.name
        if not name:
            name = next(
                (settings[k] for k in NAME_SOURCE_KEYS if isinstance(settings.get(k), str) and settings[k]),
                definition.display_name,
            )
        description = template_block.description
        if description is None:
            description = definition.description

        if template_block.is_required is not None:
            is_required = template_block.is_required
        else:
            is_required = bool(settings.get("required", False))

        return Block(
            id=self._new_id(),
            type=definition.type,
            name=substitute(name, values),
            description=substitute(description, values),
            estimated_duration=template_block.estimated_duration or definition.estimated_duration,
            settings=settings,
            order=order,
            is_required=is_required,
            template_id=template.id,
        )

    def instantiate(
        self,
        template: StudyTemplate,
        bindings: Optional[Mapping[str, str]] = None,
    ) -> OrderedBlockList:
        """Build a fresh block list from a template.

        Raises:
            MissingRequiredVariable: required variable unbound or blank
            UnknownBlockType: template references a type the catalog lacks
        """
        values = self.resolve_bindings(template, bindings or {})
        blocks = [
            self._build_block(template, tb, values, order)
            for order, tb in enumerate(template.blocks)
        ]
        logger.info(f"Instantiated template '{template.id}' into {len(blocks)} blocks")
        return OrderedBlockList(blocks)


def template_from_draft(
    draft: StudyDraft,
    template_id: str,
    name: str,
    description: str = "",
    category: str = "custom",
    variables: Iterable[TemplateVariable] = (),
    tags: Iterable[str] = (),
) -> StudyTemplate:
    """Save a draft's blocks as a reusable template.

    Block ids are not carried over; instantiating the result mints new ones.
    """
    blocks = tuple(
        TemplateBlock(
            type=block.type,
            name=block.name,
            description=block.description,
            estimated_duration=block.estimated_duration,
            is_required=block.is_required,
            settings=copy.deepcopy(block.settings),
        )
        for block in draft.blocks
    )
    return StudyTemplate(
        id=template_id,
        name=name,
        description=description,
        category=category,
        variables=tuple(variables),
        blocks=blocks,
        metadata=TemplateMetadata(
            estimated_duration=draft.total_duration or None,
            tags=tuple(tags),
        ),
    )

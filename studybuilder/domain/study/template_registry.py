"""Template registry - in-memory store of study templates."""

import logging
from typing import Dict, Iterable, List, Optional

from studybuilder.domain.study.catalog import BlockCatalog
from studybuilder.domain.study.errors import TemplateNotFound
from studybuilder.domain.study.models import StudyTemplate


logger = logging.getLogger(__name__)


class TemplateRegistry:
    """In-memory registry of available study templates.

    Every template is checked against the catalog when registered, so a
    template referencing an unregistered block type never gets in.

    Usage:
        registry = TemplateRegistry(catalog, source.load_templates())
        template = registry.get("usability-new-product")
    """

    def __init__(
        self,
        catalog: BlockCatalog,
        templates: Iterable[StudyTemplate] = (),
    ):
        self._catalog = catalog
        self._templates: Dict[str, StudyTemplate] = {}
        for template in templates:
            self.add(template)

    def get(self, template_id: str) -> StudyTemplate:
        """Get template by id.

        Raises:
            TemplateNotFound: If template not in registry
        """
        if template_id not in self._templates:
            raise TemplateNotFound(template_id, self.list_ids())
        return self._templates[template_id]

    def get_optional(self, template_id: str) -> Optional[StudyTemplate]:
        return self._templates.get(template_id)

    def list_ids(self) -> List[str]:
        return list(self._templates.keys())

    def list_all(self) -> List[StudyTemplate]:
        return list(self._templates.values())

    def list_by_category(self, category: str) -> List[StudyTemplate]:
        return [t for t in self._templates.values() if t.category == category]

    def categories(self) -> List[str]:
        return sorted({t.category for t in self._templates.values()})

    def search(self, query: str = "", tags: Optional[Iterable[str]] = None) -> List[StudyTemplate]:
        """Case-insensitive match on name/description, filtered to templates carrying every tag."""
        needle = query.strip().lower()
        wanted = {t.lower() for t in tags or []}
        results = []
        for template in self._templates.values():
            if needle and needle not in template.name.lower() and needle not in template.description.lower():
                continue
            if wanted and not wanted.issubset({t.lower() for t in template.metadata.tags}):
                continue
            results.append(template)
        return results

    def count(self) -> int:
        return len(self._templates)

    def add(self, template: StudyTemplate) -> None:
        """Register a template, replacing any with the same id.

        Raises:
            UnknownBlockType: If a template block type is not in the catalog
        """
        for block in template.blocks:
            self._catalog.lookup(block.type)
        if template.id in self._templates:
            logger.info(f"Replacing template: {template.id}")
        self._templates[template.id] = template

    def remove(self, template_id: str) -> bool:
        """Remove a template. Returns True if removed, False if not found."""
        if template_id in self._templates:
            del self._templates[template_id]
            return True
        return False

"""Catalog loading - read, validate and parse block catalog and template documents.

Documents are YAML on disk (YamlCatalogSource) or JSON from a remote catalog
service (HttpCatalogSource). Either way each document is checked against its
JSON Schema before typed models are built.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
import jsonschema
import yaml

from studybuilder.domain.study.catalog import (
    BlockCatalog,
    BlockDefinition,
    BlockUsage,
    StudyTypeRules,
    seconds_to_minutes,
)
from studybuilder.domain.study.errors import CatalogLoadError, UnknownBlockType
from studybuilder.domain.study.models import (
    BlockType,
    Complexity,
    StudyTemplate,
    StudyType,
    TemplateBlock,
    TemplateMetadata,
    TemplateVariable,
)


logger = logging.getLogger(__name__)

DEFAULT_SCHEMAS_DIR = Path(__file__).resolve().parents[3] / "seed" / "schemas"

BLOCK_CATALOG_SCHEMA = "block_catalog.v1.json"
STUDY_TYPES_SCHEMA = "study_types.v1.json"
STUDY_TEMPLATE_SCHEMA = "study_template.v1.json"


class SchemaValidator:
    """Validate raw documents against the seed JSON Schemas."""

    def __init__(self, schemas_dir: Optional[Path] = None):
        self.schemas_dir = Path(schemas_dir) if schemas_dir else DEFAULT_SCHEMAS_DIR
        self._schema_cache: Dict[str, Dict[str, Any]] = {}

    def _load_schema(self, name: str) -> Dict[str, Any]:
        if name not in self._schema_cache:
            path = self.schemas_dir / name
            try:
                with open(path, "r", encoding="utf-8") as f:
                    self._schema_cache[name] = json.load(f)
            except FileNotFoundError:
                raise CatalogLoadError(f"Schema not found: {path}")
            except json.JSONDecodeError as e:
                raise CatalogLoadError(f"Invalid JSON in schema {path}: {e}")
        return self._schema_cache[name]

    def errors_for(self, document: Any, schema_name: str) -> List[str]:
        """Every schema violation as a 'path: message' string."""
        schema = self._load_schema(schema_name)
        validator = jsonschema.Draft202012Validator(schema)
        errors = []
        for error in validator.iter_errors(document):
            path = "/".join(str(p) for p in error.absolute_path) or "$"
            errors.append(f"{path}: {error.message}")
        return errors

    def check(self, document: Any, schema_name: str, source: str) -> None:
        errors = self.errors_for(document, schema_name)
        if errors:
            raise CatalogLoadError(f"{source} failed {schema_name} validation", errors)


# -----------------------------------------------------------------------------
# Parsing (document dict -> typed model)
# -----------------------------------------------------------------------------

def _parse_block_type(value: Any, source: str) -> BlockType:
    try:
        return BlockType.parse(value)
    except UnknownBlockType as e:
        raise CatalogLoadError(f"{source}: {e}", [str(e)])


def _parse_block_types(values: Optional[List[Any]], source: str) -> Tuple[BlockType, ...]:
    return tuple(_parse_block_type(v, source) for v in values or [])


def parse_block_definition(raw: Dict[str, Any], source: str = "catalog") -> BlockDefinition:
    if "estimated_duration" in raw:
        duration = int(raw["estimated_duration"])
    else:
        duration = seconds_to_minutes(raw["estimated_duration_seconds"])

    usage_raw = raw.get("usage") or {}
    usage = BlockUsage(
        usage_count=usage_raw.get("usage_count", 0),
        popularity=float(usage_raw.get("popularity", 0)),
        rating=float(usage_raw.get("rating", 0)),
        study_types=tuple(usage_raw.get("study_types", [])),
    )
    return BlockDefinition(
        type=_parse_block_type(raw["type"], source),
        display_name=raw["display_name"],
        description=raw.get("description", ""),
        category=raw["category"],
        estimated_duration=duration,
        complexity=Complexity(raw.get("complexity", "simple")),
        default_settings=raw.get("default_settings") or {},
        customizable_fields=tuple(raw.get("customizable_fields", [])),
        allow_customization=raw.get("allow_customization", True),
        requires_description=raw.get("requires_description", False),
        tags=tuple(raw.get("tags", [])),
        usage=usage,
        version=str(raw.get("version", "1.0.0")),
    )


def parse_study_type_rules(raw: Dict[str, Any], source: str = "study_types") -> StudyTypeRules:
    allowed = raw.get("allowed_blocks")
    start = raw.get("must_start_with")
    end = raw.get("must_end_with")
    return StudyTypeRules(
        study_type=StudyType(raw["id"]),
        display_name=raw.get("display_name", raw["id"]),
        min_blocks=raw.get("min_blocks", 1),
        max_blocks=raw.get("max_blocks"),
        allowed_blocks=_parse_block_types(allowed, source) if allowed is not None else None,
        forbidden_blocks=_parse_block_types(raw.get("forbidden_blocks"), source),
        must_start_with=_parse_block_type(start, source) if start else None,
        must_end_with=_parse_block_type(end, source) if end else None,
        recording_recommended=raw.get("recording_recommended", False),
        default_blocks=_parse_block_types(raw.get("default_blocks"), source),
    )


def parse_template(raw: Dict[str, Any], source: str = "template") -> StudyTemplate:
    variables = tuple(
        TemplateVariable(
            key=v["key"],
            label=v["label"],
            type=v.get("type", "text"),
            required=v.get("required", False),
            default_value=v.get("default_value"),
            placeholder=v.get("placeholder"),
        )
        for v in raw.get("variables", [])
    )
    blocks = tuple(
        TemplateBlock(
            type=_parse_block_type(b["type"], source),
            name=b.get("name"),
            description=b.get("description"),
            estimated_duration=b.get("estimated_duration"),
            is_required=b.get("is_required"),
            settings=b.get("settings") or {},
            source_id=b.get("id"),
        )
        for b in raw["blocks"]
    )
    meta = raw.get("metadata") or {}
    metadata = TemplateMetadata(
        estimated_duration=meta.get("estimated_duration"),
        tags=tuple(meta.get("tags", [])),
        complexity=Complexity(meta.get("complexity", "simple")),
        version=str(meta.get("version", "1.0.0")),
    )
    try:
        return StudyTemplate(
            id=raw["id"],
            name=raw["name"],
            description=raw.get("description", ""),
            category=raw["category"],
            variables=variables,
            blocks=blocks,
            metadata=metadata,
        )
    except ValueError as e:
        raise CatalogLoadError(f"{source}: {e}", [str(e)])


def build_catalog(
    blocks_doc: Dict[str, Any],
    study_types_doc: Optional[Dict[str, Any]] = None,
    validator: Optional[SchemaValidator] = None,
    source: str = "catalog",
) -> BlockCatalog:
    """Validate catalog documents and build a BlockCatalog."""
    validator = validator or SchemaValidator()
    validator.check(blocks_doc, BLOCK_CATALOG_SCHEMA, f"{source} blocks")
    definitions = [parse_block_definition(b, source) for b in blocks_doc["blocks"]]

    rules: List[StudyTypeRules] = []
    if study_types_doc is not None:
        validator.check(study_types_doc, STUDY_TYPES_SCHEMA, f"{source} study types")
        rules = [parse_study_type_rules(r, source) for r in study_types_doc["study_types"]]

    try:
        return BlockCatalog(definitions, rules)
    except ValueError as e:
        raise CatalogLoadError(f"{source}: {e}", [str(e)])


def build_template(
    document: Dict[str, Any],
    validator: Optional[SchemaValidator] = None,
    source: str = "template",
) -> StudyTemplate:
    validator = validator or SchemaValidator()
    validator.check(document, STUDY_TEMPLATE_SCHEMA, source)
    return parse_template(document, source)


# -----------------------------------------------------------------------------
# Sources
# -----------------------------------------------------------------------------

class YamlCatalogSource:
    """Load the catalog and templates from YAML seed files.

    Usage:
        source = YamlCatalogSource(Path("seed/catalog"), Path("seed/templates"))
        catalog = source.load_catalog()
        templates = source.load_templates()
    """

    BLOCKS_FILE = "blocks.yaml"
    STUDY_TYPES_FILE = "study_types.yaml"

    def __init__(
        self,
        catalog_dir: Path,
        templates_dir: Optional[Path] = None,
        validator: Optional[SchemaValidator] = None,
    ):
        self.catalog_dir = Path(catalog_dir)
        self.templates_dir = Path(templates_dir) if templates_dir else None
        self.validator = validator or SchemaValidator()

    @staticmethod
    def _read_yaml(path: Path) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except FileNotFoundError:
            raise CatalogLoadError(f"Catalog file not found: {path}")
        except yaml.YAMLError as e:
            raise CatalogLoadError(f"Invalid YAML in {path}: {e}")

    def load_catalog(self) -> BlockCatalog:
        blocks_path = self.catalog_dir / self.BLOCKS_FILE
        study_types_path = self.catalog_dir / self.STUDY_TYPES_FILE

        blocks_doc = self._read_yaml(blocks_path)
        study_types_doc = self._read_yaml(study_types_path) if study_types_path.exists() else None

        catalog = build_catalog(blocks_doc, study_types_doc, self.validator, str(blocks_path))
        logger.info(
            f"Loaded block catalog: {len(catalog)} block types, "
            f"{len(catalog.study_types())} study types"
        )
        return catalog

    def load_templates(self) -> List[StudyTemplate]:
        """Load every *.yaml template, sorted by file name."""
        if self.templates_dir is None:
            return []
        if not self.templates_dir.exists():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return []

        templates = []
        for path in sorted(self.templates_dir.glob("*.yaml")):
            template = build_template(self._read_yaml(path), self.validator, str(path))
            templates.append(template)
            logger.info(f"Loaded template: {template.id} ({template.name})")
        return templates


class HttpCatalogSource:
    """Fetch catalog and template documents from a remote catalog service.

    The service exposes the same documents as the YAML seeds, as JSON:
        GET {base_url}/blocks
        GET {base_url}/study-types
        GET {base_url}/templates  -> {"templates": [<study_template.v1>, ...]}
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        validator: Optional[SchemaValidator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.validator = validator or SchemaValidator()
        self._transport = transport

    async def _get_json(self, client: httpx.AsyncClient, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            raise CatalogLoadError(f"Failed to fetch {url}: {e}")
        if response.status_code >= 400:
            raise CatalogLoadError(f"Failed to fetch {url}: HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise CatalogLoadError(f"Invalid JSON from {url}: {e}")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def load_catalog(self) -> BlockCatalog:
        async with self._client() as client:
            blocks_doc = await self._get_json(client, "/blocks")
            study_types_doc = await self._get_json(client, "/study-types")
        catalog = build_catalog(blocks_doc, study_types_doc, self.validator, self.base_url)
        logger.info(f"Fetched block catalog from {self.base_url}: {len(catalog)} block types")
        return catalog

    async def load_templates(self) -> List[StudyTemplate]:
        async with self._client() as client:
            payload = await self._get_json(client, "/templates")
        documents = payload.get("templates", []) if isinstance(payload, dict) else []
        templates = [
            build_template(doc, self.validator, f"{self.base_url}/templates[{i}]")
            for i, doc in enumerate(documents)
        ]
        logger.info(f"Fetched {len(templates)} templates from {self.base_url}")
        return templates

"""FastAPI dependency injection for API endpoints."""

from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from fastapi import Depends

from studybuilder.domain.study import (
    BlockCatalog,
    DraftAutosaver,
    DraftStore,
    FileDraftStore,
    HttpStudyClient,
    InMemoryDraftStore,
    InMemoryStudyClient,
    StudyBuilderSession,
    StudyCreationClient,
    StudyDraft,
    TemplateInstantiator,
    TemplateRegistry,
    ValidationEngine,
    YamlCatalogSource,
)
from studybuilder.settings import Settings, get_settings


PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _resolve(path: str) -> Path:
    """Relative paths are taken from the project root."""
    resolved = Path(path)
    return resolved if resolved.is_absolute() else PROJECT_ROOT / resolved


def _catalog_source(settings: Settings) -> YamlCatalogSource:
    return YamlCatalogSource(
        catalog_dir=_resolve(settings.catalog_dir),
        templates_dir=_resolve(settings.templates_dir),
    )


@lru_cache
def get_catalog() -> BlockCatalog:
    """Get the block catalog loaded from the seed files."""
    return _catalog_source(get_settings()).load_catalog()


@lru_cache
def get_template_registry() -> TemplateRegistry:
    """Get template registry with loaded templates."""
    settings = get_settings()
    return TemplateRegistry(get_catalog(), _catalog_source(settings).load_templates())


@lru_cache
def get_validation_engine() -> ValidationEngine:
    settings = get_settings()
    return ValidationEngine(get_catalog(), settings.duration_warning_minutes)


def get_instantiator(catalog: BlockCatalog = Depends(get_catalog)) -> TemplateInstantiator:
    return TemplateInstantiator(catalog)


@lru_cache
def get_study_client() -> StudyCreationClient:
    """Get the study creation client; in-memory unless a study API is configured."""
    settings = get_settings()
    if settings.use_memory_persistence or not settings.study_api_url:
        return InMemoryStudyClient()
    return HttpStudyClient(
        settings.study_api_url,
        timeout=settings.study_api_timeout_seconds,
    )


@lru_cache
def get_draft_store() -> DraftStore:
    """Get draft snapshot storage implementation."""
    settings = get_settings()
    if settings.use_memory_persistence:
        return InMemoryDraftStore()
    return FileDraftStore(_resolve(settings.draft_state_dir))


def get_session_factory(
    catalog: BlockCatalog = Depends(get_catalog),
    engine: ValidationEngine = Depends(get_validation_engine),
    store: DraftStore = Depends(get_draft_store),
    settings: Settings = Depends(get_settings),
) -> Callable[..., StudyBuilderSession]:
    """Get a factory for editing sessions that autosave to the draft store."""
    def open_session(draft_key: str, draft: Optional[StudyDraft] = None) -> StudyBuilderSession:
        autosaver = DraftAutosaver(store, draft_key, delay_seconds=settings.autosave_delay_seconds)
        return StudyBuilderSession(catalog, draft=draft, engine=engine, autosaver=autosaver)
    return open_session


def clear_caches() -> None:
    """Clear cached dependencies (for testing)."""
    get_settings.cache_clear()
    get_catalog.cache_clear()
    get_template_registry.cache_clear()
    get_validation_engine.cache_clear()
    get_study_client.cache_clear()
    get_draft_store.cache_clear()

"""
Shared pytest fixtures for all tests.

Provides the seed catalog, templates and a few ready-made drafts.
"""

from dataclasses import replace
from pathlib import Path

import pytest

from studybuilder.domain.study import (
    BlockCatalog,
    BlockType,
    InMemoryDraftStore,
    InMemoryStudyClient,
    OrderedBlockList,
    SessionType,
    StudyDraft,
    StudySetup,
    StudyTemplate,
    StudyType,
    TemplateBlock,
    TemplateInstantiator,
    TemplateRegistry,
    TemplateVariable,
    ValidationEngine,
    YamlCatalogSource,
)


PROJECT_ROOT = Path(__file__).resolve().parents[1]
SEED_DIR = PROJECT_ROOT / "seed"


# =============================================================================
# CATALOG FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def seed_source() -> YamlCatalogSource:
    """Catalog source reading the project's seed files."""
    return YamlCatalogSource(SEED_DIR / "catalog", SEED_DIR / "templates")


@pytest.fixture(scope="session")
def catalog(seed_source) -> BlockCatalog:
    """The seed block catalog (immutable, shared across tests)."""
    return seed_source.load_catalog()


@pytest.fixture(scope="session")
def ordered_catalog(catalog) -> BlockCatalog:
    """Seed catalog whose usability rules also pin the first and last block."""
    rules = [
        replace(
            r,
            min_blocks=2,
            must_start_with=BlockType.WELCOME,
            must_end_with=BlockType.THANK_YOU,
        ) if r.study_type == StudyType.USABILITY else r
        for r in catalog.study_types()
    ]
    return BlockCatalog(catalog.definitions(), rules)


@pytest.fixture(scope="session")
def seed_templates(seed_source):
    return seed_source.load_templates()


@pytest.fixture
def registry(catalog, seed_templates) -> TemplateRegistry:
    return TemplateRegistry(catalog, seed_templates)


@pytest.fixture
def engine(catalog) -> ValidationEngine:
    return ValidationEngine(catalog)


@pytest.fixture
def instantiator(catalog) -> TemplateInstantiator:
    counter = iter(range(1, 10_000))
    return TemplateInstantiator(catalog, id_factory=lambda: f"block_{next(counter)}")


@pytest.fixture
def globex_template() -> StudyTemplate:
    """Template with one required variable defaulting to Acme."""
    return StudyTemplate(
        id="brand-survey",
        name="Brand Survey",
        description="Short brand perception survey",
        category="survey",
        variables=(
            TemplateVariable(
                key="companyName",
                label="Company Name",
                required=True,
                default_value="Acme",
            ),
        ),
        blocks=(
            TemplateBlock(
                type=BlockType.WELCOME,
                settings={"title": "Welcome to the [companyName] survey"},
            ),
            TemplateBlock(
                type=BlockType.YES_NO,
                settings={"question": "Have you heard of [companyName]?"},
            ),
            TemplateBlock(type=BlockType.THANK_YOU),
        ),
    )


# =============================================================================
# DRAFT FIXTURES
# =============================================================================

def _make_setup(**overrides) -> StudySetup:
    values = {
        "title": "Checkout usability",
        "description": "How easily can shoppers complete a purchase?",
        "study_type": StudyType.USABILITY,
        "session_type": SessionType.UNMODERATED,
        "target_participants": 12,
    }
    values.update(overrides)
    return StudySetup(**values)


@pytest.fixture
def valid_draft(catalog) -> StudyDraft:
    """Usability draft that passes every step."""
    blocks = OrderedBlockList([
        catalog.create_block(BlockType.WELCOME, id="welcome"),
        catalog.create_block(
            BlockType.OPEN_QUESTION,
            id="question",
            settings={"question": "What was hardest about checking out?"},
        ),
        catalog.create_block(BlockType.THANK_YOU, id="thanks"),
    ])
    return StudyDraft(setup=_make_setup(), blocks=blocks)


@pytest.fixture
def interview_draft() -> StudyDraft:
    """Interview draft with a valid setup and no blocks yet."""
    return StudyDraft(
        setup=_make_setup(
            title="Onboarding interviews",
            description="Talk to new customers about their first week.",
            study_type=StudyType.INTERVIEW,
        ),
        blocks=OrderedBlockList(),
    )


@pytest.fixture
def draft_store() -> InMemoryDraftStore:
    return InMemoryDraftStore()


@pytest.fixture
def study_client() -> InMemoryStudyClient:
    return InMemoryStudyClient()

"""Tests for the block catalog."""

import pytest

from studybuilder.domain.study import (
    BlockCatalog,
    BlockDefinition,
    BlockType,
    StudyType,
    StudyTypeRules,
    UnknownBlockType,
    ValidationIssueCode,
)
from studybuilder.domain.study.catalog import seconds_to_minutes


class TestLookup:
    """Tests for definition lookup."""

    def test_seed_catalog_covers_every_block_type(self, catalog):
        assert len(catalog) == len(BlockType)
        assert set(catalog.block_types()) == set(BlockType)

    def test_lookup_by_string_and_enum(self, catalog):
        assert catalog.lookup("welcome") is catalog.lookup(BlockType.WELCOME)

    def test_lookup_unknown_type_raises(self, catalog):
        with pytest.raises(UnknownBlockType) as exc_info:
            catalog.lookup("hologram")

        assert exc_info.value.block_type == "hologram"

    def test_lookup_type_missing_from_small_catalog(self):
        small = BlockCatalog([
            BlockDefinition(BlockType.WELCOME, "Welcome", "", "display", 1),
        ])

        assert BlockType.THANK_YOU not in small
        with pytest.raises(UnknownBlockType):
            small.lookup(BlockType.THANK_YOU)

    def test_duplicate_definition_rejected(self):
        definition = BlockDefinition(BlockType.WELCOME, "Welcome", "", "display", 1)

        with pytest.raises(ValueError, match="defined twice"):
            BlockCatalog([definition, definition])

    def test_seconds_are_rounded_up_to_minutes(self, catalog):
        assert catalog.lookup(BlockType.WELCOME).estimated_duration == 1
        assert catalog.lookup(BlockType.OPEN_QUESTION).estimated_duration == 2
        assert catalog.lookup(BlockType.CARD_SORT).estimated_duration == 5


class TestSecondsToMinutes:
    """Tests for seconds_to_minutes."""

    @pytest.mark.parametrize("seconds,minutes", [(0, 1), (15, 1), (60, 1), (61, 2), (120, 2), (90, 2)])
    def test_conversion(self, seconds, minutes):
        assert seconds_to_minutes(seconds) == minutes


class TestCatalogEntry:
    """Tests for the catalog wire shape."""

    def test_entry_shape(self, catalog):
        entry = catalog.lookup(BlockType.WELCOME).to_catalog_entry()

        assert entry["id"] == "catalog_welcome"
        assert entry["blockType"] == "welcome"
        assert entry["defaultSettings"]["title"] == "Welcome to our study"
        assert set(entry["metadata"]) == {"category", "complexity", "estimatedDuration", "tags", "version"}
        assert set(entry["usage"]) == {"usageCount", "popularity", "rating", "studyTypes"}
        assert entry["customization"]["allowCustomization"] is True
        assert "title" in entry["customization"]["customizableFields"]

    def test_entry_defaults_are_copies(self, catalog):
        entry = catalog.lookup(BlockType.MULTIPLE_CHOICE).to_catalog_entry()
        entry["defaultSettings"]["options"].append("Injected")

        assert "Injected" not in catalog.lookup(BlockType.MULTIPLE_CHOICE).default_settings["options"]


class TestStudyTypes:
    """Tests for study type rules."""

    def test_usability_rules(self, catalog):
        rules = catalog.study_type_rules(StudyType.USABILITY)

        assert rules.min_blocks == 1
        assert rules.must_start_with is None
        assert rules.must_end_with is None
        assert not rules.allows(BlockType.CARD_SORT)
        assert rules.allows(BlockType.LIVE_WEBSITE_TEST)

    def test_interview_allow_list(self, catalog):
        types = {d.type for d in catalog.list_for_study_type("interview")}

        assert types == {
            BlockType.WELCOME,
            BlockType.OPEN_QUESTION,
            BlockType.CONTEXT_SCREEN,
            BlockType.SCREENER,
            BlockType.THANK_YOU,
        }

    def test_undeclared_study_type_is_permissive(self):
        catalog = BlockCatalog([BlockDefinition(BlockType.WELCOME, "Welcome", "", "display", 1)])

        rules = catalog.study_type_rules(StudyType.SURVEY)

        assert rules == StudyTypeRules(study_type=StudyType.SURVEY)
        assert rules.allows(BlockType.CARD_SORT)


class TestCreateBlock:
    """Tests for create_block."""

    def test_uses_catalog_defaults(self, catalog):
        block = catalog.create_block("open_question")

        assert block.type == BlockType.OPEN_QUESTION
        assert block.name == "Open Question"
        assert block.estimated_duration == 2
        assert block.settings["question"] == "Please share your thoughts..."
        assert block.template_id == "catalog_open_question"
        assert block.id.startswith("block_")

    def test_settings_override_is_merged(self, catalog):
        block = catalog.create_block("open_question", settings={"question": "Why?"})

        assert block.settings["question"] == "Why?"
        assert block.settings["maxLength"] == 1000

    def test_created_blocks_do_not_share_settings(self, catalog):
        first = catalog.create_block("multiple_choice")
        second = catalog.create_block("multiple_choice")

        first.settings["options"].append("Extra")

        assert "Extra" not in second.settings["options"]
        assert first.id != second.id


class TestCustomization:
    """Tests for check_customization."""

    def test_allowed_fields_pass(self, catalog):
        issues = catalog.check_customization(
            "welcome", {"name": "Hello", "settings": {"title": "Hi", "buttonText": "Go"}},
        )

        assert issues == []

    def test_disallowed_fields_reported(self, catalog):
        issues = catalog.check_customization(
            "welcome", {"estimated_duration": 5, "settings": {"layout": "wide"}}, scope="blk",
        )

        assert {i.field for i in issues} == {"estimated_duration", "layout"}
        assert all(i.code == ValidationIssueCode.FIELD_NOT_CUSTOMIZABLE for i in issues)
        assert all(i.scope == "blk" for i in issues)

    def test_setting_key_at_top_level_rejected(self, catalog):
        issues = catalog.check_customization("open_question", {"question": "Why?"}, scope="q")

        assert [i.field for i in issues] == ["question"]
        assert issues[0].code == ValidationIssueCode.FIELD_NOT_CUSTOMIZABLE
        assert "under settings" in issues[0].message

    def test_block_field_at_top_level_passes(self, catalog):
        issues = catalog.check_customization(
            "open_question", {"estimated_duration": 3, "settings": {"question": "Why?"}},
        )

        assert issues == []

    def test_locked_definition_rejects_everything(self):
        catalog = BlockCatalog([
            BlockDefinition(
                BlockType.THANK_YOU, "Thanks", "", "completion", 1,
                customizable_fields=("title",), allow_customization=False,
            ),
        ])

        issues = catalog.check_customization("thank_you", {"settings": {"title": "Bye"}})

        assert [i.field for i in issues] == ["title"]


class TestDurationHelpers:
    """Tests for duration and complexity helpers."""

    def test_estimated_duration(self, catalog):
        total = catalog.estimated_duration([BlockType.WELCOME, BlockType.CARD_SORT, "thank_you"])

        assert total == 1 + 5 + 1

    def test_complexity_stats(self, catalog):
        stats = catalog.complexity_stats([BlockType.WELCOME, BlockType.PROTOTYPE_TEST])

        assert stats == {"simple": 1, "moderate": 0, "complex": 1}

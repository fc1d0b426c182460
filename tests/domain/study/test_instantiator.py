"""Tests for template instantiation."""

import logging

import pytest

from studybuilder.domain.study import (
    BlockCatalog,
    BlockDefinition,
    BlockType,
    MissingRequiredVariable,
    StudyTemplate,
    TemplateBlock,
    TemplateInstantiator,
    TemplateVariable,
    UnknownBlockType,
    template_from_draft,
)
from studybuilder.domain.study.instantiator import MARKER_PATTERN, substitute


def _markers(value):
    """Every unresolved [KEY] marker anywhere in value."""
    if isinstance(value, str):
        return MARKER_PATTERN.findall(value)
    if isinstance(value, dict):
        return [m for v in value.values() for m in _markers(v)]
    if isinstance(value, list):
        return [m for v in value for m in _markers(v)]
    return []


class TestSubstitute:
    """Tests for marker substitution."""

    def test_replaces_nested_strings(self):
        value = {"title": "Hi [A]", "options": ["[A]", "x"], "nested": {"n": "[B]!"}, "count": 3}

        result = substitute(value, {"A": "Alpha", "B": "Beta"})

        assert result == {"title": "Hi Alpha", "options": ["Alpha", "x"], "nested": {"n": "Beta!"}, "count": 3}

    def test_unknown_markers_left_alone(self):
        assert substitute("[A] and [Z]", {"A": "1"}) == "1 and [Z]"

    def test_single_pass(self):
        # A value that itself looks like a marker is not expanded again
        assert substitute("[A]", {"A": "[B]", "B": "boom"}) == "[B]"


class TestGlobexScenario:
    """A bound required variable wins over its default."""

    def test_title_uses_bound_value(self, instantiator, globex_template):
        blocks = instantiator.instantiate(globex_template, {"companyName": "Globex"})

        welcome = blocks[0]
        assert welcome.settings["title"] == "Welcome to the Globex survey"
        assert "Acme" not in welcome.settings["title"]
        assert blocks[1].settings["question"] == "Have you heard of Globex?"

    def test_seed_template_with_globex(self, instantiator, registry):
        template = registry.get("customer-satisfaction")

        blocks = instantiator.instantiate(template, {"companyName": "Globex"})

        assert blocks[0].settings["title"] == "Welcome to the Globex survey"
        assert blocks[0].name == "Welcome to the Globex survey"


class TestRoundTrip:
    """Default bindings resolve every marker."""

    def test_all_seed_templates(self, instantiator, registry):
        for template in registry.list_all():
            blocks = instantiator.instantiate(template, template.default_bindings())

            assert len(blocks) == len(template.blocks)
            for block in blocks:
                assert _markers(block.settings) == [], f"{template.id}/{block.type.value}"
                assert _markers(block.name) == []
                assert _markers(block.description) == []

    def test_globex_template_defaults(self, instantiator, globex_template):
        blocks = instantiator.instantiate(globex_template, globex_template.default_bindings())

        assert blocks[0].settings["title"] == "Welcome to the Acme survey"


class TestBindings:
    """Tests for binding resolution."""

    def test_missing_required_raises(self, instantiator, globex_template):
        with pytest.raises(MissingRequiredVariable) as exc_info:
            instantiator.instantiate(globex_template, {})

        assert exc_info.value.key == "companyName"
        assert exc_info.value.template_id == "brand-survey"

    def test_blank_required_raises(self, instantiator, globex_template):
        with pytest.raises(MissingRequiredVariable):
            instantiator.instantiate(globex_template, {"companyName": "   "})

    def test_optional_falls_back_to_default(self, instantiator, registry):
        template = registry.get("navigation-card-sort")

        blocks = instantiator.instantiate(template, {"SITE": ""})

        assert blocks[0].settings["title"] == "Help us organize our website"

    def test_optional_without_default_becomes_empty(self, catalog):
        template = StudyTemplate(
            id="t", name="T", description="", category="c",
            variables=(TemplateVariable(key="NOTE", label="Note"),),
            blocks=(TemplateBlock(type=BlockType.THANK_YOU, settings={"message": "Bye[NOTE]"}),),
        )

        blocks = TemplateInstantiator(catalog).instantiate(template)

        assert blocks[0].settings["message"] == "Bye"

    def test_unknown_binding_keys_are_logged(self, instantiator, globex_template, caplog):
        with caplog.at_level(logging.WARNING, logger="studybuilder.domain.study.instantiator"):
            instantiator.instantiate(globex_template, {"companyName": "Globex", "company": "x"})

        assert "company" in caplog.text
        assert "Ignoring bindings" in caplog.text


class TestBlockConstruction:
    """Tests for how template blocks become blocks."""

    def test_fresh_ids_and_orders(self, catalog, registry):
        template = registry.get("usability-new-product")
        instantiator = TemplateInstantiator(catalog)

        first = instantiator.instantiate(template, template.default_bindings())
        second = instantiator.instantiate(template, template.default_bindings())

        assert [b.order for b in first] == list(range(len(template.blocks)))
        assert set(first.ids()).isdisjoint(second.ids())
        assert "welcome-1" not in first.ids()

    def test_catalog_defaults_fill_gaps(self, instantiator, registry):
        template = registry.get("customer-satisfaction")

        blocks = instantiator.instantiate(template, {"companyName": "Globex"})
        thank_you = blocks[-1]

        assert thank_you.settings["title"] == "Thank You!"
        assert thank_you.name == "Thank You!"
        assert thank_you.description == "Study completion and appreciation message"
        assert thank_you.estimated_duration == 1

    def test_template_values_override(self, instantiator, registry):
        template = registry.get("usability-new-product")

        blocks = instantiator.instantiate(template, {
            "PRODUCT": "Acme Notes",
            "TASK": "create a note",
            "WEBSITE": "https://notes.example.com",
        })
        task = blocks[2]

        assert task.type == BlockType.LIVE_WEBSITE_TEST
        assert task.estimated_duration == 8
        assert task.is_required is True
        assert task.settings["websiteUrl"] == "https://notes.example.com"
        assert task.description == "Ask participants to create a note on https://notes.example.com"
        assert task.template_id == "usability-new-product"

    def test_required_falls_back_to_settings_flag(self, instantiator, registry):
        template = registry.get("customer-satisfaction")

        blocks = instantiator.instantiate(template, {"companyName": "Globex"})

        assert blocks[1].is_required is True  # opinion_scale default settings.required
        assert blocks[3].is_required is False

    def test_instantiations_do_not_share_settings(self, instantiator, globex_template):
        first = instantiator.instantiate(globex_template, {"companyName": "A"})
        second = instantiator.instantiate(globex_template, {"companyName": "A"})

        first[0].settings["title"] = "changed"

        assert second[0].settings["title"] == "Welcome to the A survey"
        assert globex_template.blocks[0].settings["title"] == "Welcome to the [companyName] survey"

    def test_type_missing_from_catalog(self, globex_template):
        catalog = BlockCatalog([BlockDefinition(BlockType.WELCOME, "Welcome", "", "display", 1)])

        with pytest.raises(UnknownBlockType):
            TemplateInstantiator(catalog).instantiate(globex_template, {"companyName": "Globex"})


class TestTemplateFromDraft:
    """Tests for saving a draft as a template."""

    def test_round_trips_blocks(self, instantiator, valid_draft):
        template = template_from_draft(valid_draft, "my-template", "Mine", tags=["custom"])

        blocks = instantiator.instantiate(template)

        assert [b.type for b in blocks] == [b.type for b in valid_draft.blocks]
        assert [b.settings for b in blocks] == [b.settings for b in valid_draft.blocks]
        assert set(blocks.ids()).isdisjoint(valid_draft.blocks.ids())
        assert template.metadata.estimated_duration == valid_draft.total_duration
        assert template.metadata.tags == ("custom",)

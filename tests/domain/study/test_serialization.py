"""Tests for wire shapes."""

import pytest

from studybuilder.domain.study import (
    BlockType,
    DuplicateBlockId,
    SessionConfig,
    SessionType,
    UnknownBlockType,
)
from studybuilder.domain.study.serialization import (
    block_from_json,
    block_to_json,
    blocks_from_json,
    draft_from_payload,
    draft_to_payload,
    template_to_json,
)


class TestBlockJson:
    """Tests for the block JSON shape."""

    def test_block_keys(self, valid_draft):
        data = block_to_json(valid_draft.blocks.get("question"))

        assert set(data) == {
            "id", "templateId", "name", "description", "estimatedDuration",
            "settings", "order", "isRequired", "type",
        }
        assert data["type"] == "open_question"
        assert data["order"] == 1
        assert data["templateId"] == "catalog_open_question"

    def test_block_from_json_defaults(self):
        block = block_from_json({"id": "b1", "type": "yes_no"})

        assert block.type == BlockType.YES_NO
        assert block.name == ""
        assert block.estimated_duration == 1
        assert block.settings == {}
        assert block.template_id is None

    def test_unknown_type_rejected(self):
        with pytest.raises(UnknownBlockType):
            block_from_json({"id": "b1", "type": "hologram"})

    def test_settings_are_copied(self):
        raw = {"id": "b1", "type": "multiple_choice", "settings": {"options": ["a", "b"]}}

        block = block_from_json(raw)
        raw["settings"]["options"].append("c")

        assert block.settings["options"] == ["a", "b"]

    def test_blocks_sorted_by_incoming_order(self):
        blocks = blocks_from_json([
            {"id": "c", "type": "thank_you", "order": 9},
            {"id": "a", "type": "welcome", "order": 0},
            {"id": "b", "type": "yes_no", "order": 4},
        ])

        assert blocks.ids() == ["a", "b", "c"]
        assert [b.order for b in blocks] == [0, 1, 2]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(DuplicateBlockId):
            blocks_from_json([{"id": "a", "type": "welcome"}, {"id": "a", "type": "yes_no"}])


class TestDraftPayload:
    """Tests for the submission payload."""

    def test_payload_shape(self, valid_draft):
        payload = draft_to_payload(valid_draft)

        assert payload["studyType"] == "usability"
        assert payload["sessionType"] == "unmoderated"
        assert payload["targetParticipants"] == 12
        assert payload["sessionConfig"] is None
        assert payload["estimatedDuration"] == valid_draft.total_duration
        assert payload["settings"]["trackClicks"] is True
        assert [b["order"] for b in payload["blocks"]] == [0, 1, 2]

    def test_payload_round_trip(self, valid_draft):
        draft = valid_draft.with_setup(
            session_type=SessionType.MODERATED,
            session_config=SessionConfig(45, ("How do you shop?",), "zoom"),
        ).with_settings(record_screen=True)

        assert draft_from_payload(draft_to_payload(draft)) == draft

    def test_missing_sections_use_defaults(self):
        draft = draft_from_payload({"title": "Quick poll"})

        assert draft.setup.title == "Quick poll"
        assert len(draft.blocks) == 0
        assert draft.settings.track_clicks is True


class TestTemplateJson:
    """Tests for template rendering."""

    def test_template_shape(self, registry):
        data = template_to_json(registry.get("usability-new-product"))

        assert data["id"] == "usability-new-product"
        assert [v["key"] for v in data["variables"]] == ["PRODUCT", "TASK", "WEBSITE", "COMPANY"]
        assert data["variables"][0]["defaultValue"] == "your product"
        assert data["blocks"][2]["estimatedDuration"] == 8
        assert data["metadata"]["complexity"] == "moderate"

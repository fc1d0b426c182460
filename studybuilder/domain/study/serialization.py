"""Wire shapes for blocks, drafts and templates.

Blocks and drafts travel as camelCase JSON:
    {id, templateId, name, description, estimatedDuration, settings, order, isRequired, type}
"""

import copy
from typing import Any, Dict, List

from studybuilder.domain.study.block_list import OrderedBlockList
from studybuilder.domain.study.models import (
    Block,
    BlockType,
    SessionConfig,
    SessionType,
    StudyDraft,
    StudySettings,
    StudySetup,
    StudyTemplate,
    StudyType,
)


def block_to_json(block: Block) -> Dict[str, Any]:
    return {
        "id": block.id,
        "templateId": block.template_id,
        "name": block.name,
        "description": block.description,
        "estimatedDuration": block.estimated_duration,
        "settings": copy.deepcopy(block.settings),
        "order": block.order,
        "isRequired": block.is_required,
        "type": block.type.value,
    }


def block_from_json(data: Dict[str, Any]) -> Block:
    """Parse a block, raising UnknownBlockType for types outside the closed set."""
    return Block(
        id=data["id"],
        type=BlockType.parse(data["type"]),
        name=data.get("name", ""),
        description=data.get("description", ""),
        estimated_duration=data.get("estimatedDuration", 1),
        settings=copy.deepcopy(data.get("settings") or {}),
        order=data.get("order", 0),
        is_required=data.get("isRequired", False),
        template_id=data.get("templateId"),
    )


def blocks_to_json(blocks: OrderedBlockList) -> List[Dict[str, Any]]:
    return [block_to_json(b) for b in blocks]


def blocks_from_json(items: List[Dict[str, Any]]) -> OrderedBlockList:
    """Build a list from JSON; incoming order values are honored, then reindexed."""
    blocks = sorted((block_from_json(item) for item in items), key=lambda b: b.order)
    return OrderedBlockList(blocks)


def setup_to_json(setup: StudySetup) -> Dict[str, Any]:
    session = None
    if setup.session_config is not None:
        session = {
            "durationMinutes": setup.session_config.duration_minutes,
            "interviewQuestions": list(setup.session_config.interview_questions),
            "meetingPlatform": setup.session_config.meeting_platform,
        }
    return {
        "title": setup.title,
        "description": setup.description,
        "studyType": setup.study_type.value,
        "sessionType": setup.session_type.value,
        "targetParticipants": setup.target_participants,
        "duration": setup.duration,
        "compensation": setup.compensation,
        "sessionConfig": session,
    }


def setup_from_json(data: Dict[str, Any]) -> StudySetup:
    session = data.get("sessionConfig")
    return StudySetup(
        title=data.get("title", ""),
        description=data.get("description", ""),
        study_type=StudyType(data.get("studyType", StudyType.USABILITY.value)),
        session_type=SessionType(data.get("sessionType", SessionType.UNMODERATED.value)),
        target_participants=data.get("targetParticipants", 15),
        duration=data.get("duration"),
        compensation=data.get("compensation", 0.0),
        session_config=SessionConfig(
            duration_minutes=session.get("durationMinutes", 0),
            interview_questions=tuple(session.get("interviewQuestions", [])),
            meeting_platform=session.get("meetingPlatform"),
        ) if session else None,
    )


def settings_to_json(settings: StudySettings) -> Dict[str, bool]:
    return {
        "recordScreen": settings.record_screen,
        "recordAudio": settings.record_audio,
        "recordVideo": settings.record_video,
        "trackClicks": settings.track_clicks,
        "trackScrolling": settings.track_scrolling,
    }


def settings_from_json(data: Dict[str, Any]) -> StudySettings:
    defaults = StudySettings()
    return StudySettings(
        record_screen=data.get("recordScreen", defaults.record_screen),
        record_audio=data.get("recordAudio", defaults.record_audio),
        record_video=data.get("recordVideo", defaults.record_video),
        track_clicks=data.get("trackClicks", defaults.track_clicks),
        track_scrolling=data.get("trackScrolling", defaults.track_scrolling),
    )


def draft_to_payload(draft: StudyDraft) -> Dict[str, Any]:
    """Submission payload: setup fields, the ordered block array and settings flags."""
    payload = setup_to_json(draft.setup)
    payload["blocks"] = blocks_to_json(draft.blocks)
    payload["settings"] = settings_to_json(draft.settings)
    payload["estimatedDuration"] = draft.total_duration
    return payload


def draft_from_payload(payload: Dict[str, Any]) -> StudyDraft:
    return StudyDraft(
        setup=setup_from_json(payload),
        blocks=blocks_from_json(payload.get("blocks", [])),
        settings=settings_from_json(payload.get("settings") or {}),
    )


def template_to_json(template: StudyTemplate) -> Dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "category": template.category,
        "variables": [
            {
                "key": v.key,
                "label": v.label,
                "type": v.type,
                "required": v.required,
                "defaultValue": v.default_value,
                "placeholder": v.placeholder,
            }
            for v in template.variables
        ],
        "blocks": [
            {
                "type": b.type.value,
                "name": b.name,
                "description": b.description,
                "estimatedDuration": b.estimated_duration,
                "isRequired": b.is_required,
                "settings": copy.deepcopy(b.settings),
            }
            for b in template.blocks
        ],
        "metadata": {
            "estimatedDuration": template.metadata.estimated_duration,
            "tags": list(template.metadata.tags),
            "complexity": template.metadata.complexity.value,
            "version": template.metadata.version,
        },
    }

"""Draft validation, submission and autosave snapshot endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from studybuilder.api.v1.dependencies import (
    get_draft_store,
    get_study_client,
    get_validation_engine,
)
from studybuilder.api.v1.exceptions import (
    APIError,
    NotFoundError,
    ServiceUnavailableError,
    UnprocessableError,
)
from studybuilder.api.v1.schemas import (
    DraftPayload,
    DraftSnapshotResponse,
    ErrorResponse,
    SubmitResponse,
    ValidationResultResponse,
)
from studybuilder.domain.study import (
    DraftStore,
    DuplicateBlockId,
    StudyCreationClient,
    StudyDraft,
    SubmissionError,
    UnknownBlockType,
    ValidationEngine,
    WizardStep,
    restore_draft,
)
from studybuilder.domain.study.persistence import make_snapshot
from studybuilder.domain.study.serialization import draft_from_payload, draft_to_payload


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])


def _to_draft(payload: DraftPayload) -> StudyDraft:
    """Convert the wire payload, rejecting unknown block types and id clashes."""
    try:
        return draft_from_payload(payload.model_dump(by_alias=True, mode="json"))
    except UnknownBlockType as e:
        raise UnprocessableError(
            "UNKNOWN_BLOCK_TYPE",
            str(e),
            details={"block_type": e.block_type},
        )
    except DuplicateBlockId as e:
        raise UnprocessableError(
            "DUPLICATE_BLOCK_ID",
            str(e),
            details={"block_id": e.block_id},
        )


@router.post(
    "/validate",
    response_model=ValidationResultResponse,
    summary="Validate a draft",
    description=(
        "Validates the whole draft, or only what one wizard step is "
        "responsible for when `step` is given."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Malformed draft"},
    },
)
async def validate_draft(
    payload: DraftPayload,
    step: Optional[WizardStep] = None,
    engine: ValidationEngine = Depends(get_validation_engine),
) -> ValidationResultResponse:
    draft = _to_draft(payload)
    result = engine.validate(draft) if step is None else engine.validate_step(draft, step)
    return ValidationResultResponse.model_validate(result.to_dict())


@router.post(
    "/submit",
    response_model=SubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a draft",
    description="Validates the draft and hands it to the study creation service.",
    responses={
        422: {"model": ErrorResponse, "description": "Draft has validation errors"},
        502: {"model": ErrorResponse, "description": "Study service rejected the draft"},
        503: {"model": ErrorResponse, "description": "Study service unavailable"},
    },
)
async def submit_draft(
    payload: DraftPayload,
    engine: ValidationEngine = Depends(get_validation_engine),
    client: StudyCreationClient = Depends(get_study_client),
) -> SubmitResponse:
    draft = _to_draft(payload)
    result = engine.validate(draft)
    if not result.is_valid:
        raise UnprocessableError(
            "DRAFT_INVALID",
            f"Draft has {len(result.errors)} validation error(s)",
            details=result.to_dict(),
        )

    try:
        study_id = await client.create_study(draft_to_payload(draft))
    except SubmissionError as e:
        if e.status_code is not None:
            raise APIError(
                "STUDY_SERVICE_ERROR",
                str(e),
                status_code=status.HTTP_502_BAD_GATEWAY,
                details={"upstream_status": e.status_code},
            )
        raise ServiceUnavailableError("Study creation", str(e))

    logger.info(f"Created study {study_id} from submitted draft")
    return SubmitResponse(study_id=study_id)


@router.put(
    "/{draft_key}",
    response_model=DraftSnapshotResponse,
    summary="Save a draft snapshot",
    responses={
        422: {"model": ErrorResponse, "description": "Malformed draft"},
    },
)
async def save_draft(
    draft_key: str,
    payload: DraftPayload,
    store: DraftStore = Depends(get_draft_store),
) -> DraftSnapshotResponse:
    draft = _to_draft(payload)
    previous = await store.load_draft(draft_key)
    revision = (previous or {}).get("revision", 0) + 1
    await store.save_draft(draft_key, make_snapshot(draft_to_payload(draft), revision))
    return DraftSnapshotResponse(
        draft_key=draft_key,
        draft=DraftPayload.model_validate(draft_to_payload(draft)),
    )


@router.get(
    "/{draft_key}",
    response_model=DraftSnapshotResponse,
    summary="Restore a draft snapshot",
    description="Returns the saved draft unless it is missing, unreadable or expired.",
    responses={
        404: {"model": ErrorResponse, "description": "No restorable draft"},
    },
)
async def load_draft(
    draft_key: str,
    store: DraftStore = Depends(get_draft_store),
) -> DraftSnapshotResponse:
    draft = await restore_draft(store, draft_key)
    if draft is None:
        raise NotFoundError("draft", draft_key)
    return DraftSnapshotResponse(
        draft_key=draft_key,
        draft=DraftPayload.model_validate(draft_to_payload(draft)),
    )


@router.delete(
    "/{draft_key}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a draft snapshot",
)
async def delete_draft(
    draft_key: str,
    store: DraftStore = Depends(get_draft_store),
) -> Response:
    await store.delete_draft(draft_key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

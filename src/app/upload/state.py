import dataclasses

from app.common.errors import InvalidTransitionError
from app.models.photo import PhotoRecord
from app.schemas.enum import UploadState, UploadTarget

ALLOWED_TRANSITIONS = {
    UploadState.PENDING: {UploadState.UPLOADING},
    # deferral (Wi-Fi required) falls back to PENDING
    UploadState.UPLOADING: {UploadState.UPLOADED, UploadState.FAILED, UploadState.PENDING},
    UploadState.FAILED: {UploadState.UPLOADING},
    UploadState.UPLOADED: set(),
}


def transition(record: PhotoRecord, new_state: UploadState) -> PhotoRecord:
    if new_state not in ALLOWED_TRANSITIONS[record.upload_state]:
        raise InvalidTransitionError(
            f"{record.id}: {record.upload_state.value} -> {new_state.value} is not allowed"
        )
    return dataclasses.replace(record, upload_state=new_state)


def can_auto_upload(record: PhotoRecord) -> bool:
    """MANUAL photos never move automatically; only PENDING/FAILED may (re)start."""
    return (
        record.upload_target != UploadTarget.MANUAL
        and UploadState.UPLOADING in ALLOWED_TRANSITIONS[record.upload_state]
    )


def mark_uploading(record: PhotoRecord) -> PhotoRecord:
    if record.upload_target == UploadTarget.MANUAL:
        raise InvalidTransitionError(f"{record.id}: MANUAL photos are not uploaded automatically")
    return transition(record, UploadState.UPLOADING)

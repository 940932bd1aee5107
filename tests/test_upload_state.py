import os
import sys
from datetime import datetime, timezone

import pytest

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.common.errors import InvalidTransitionError
from app.models.photo import PhotoRecord
from app.schemas.enum import UploadState, UploadTarget
from app.upload.state import can_auto_upload, mark_uploading, transition


def make_record(state=UploadState.PENDING, target=UploadTarget.GOOGLE_DRIVE):
    return PhotoRecord(
        id="IMG_1",
        file_path="/tmp/IMG_1.jpg",
        timestamp=datetime.now(timezone.utc),
        upload_state=state,
        upload_target=target,
    )


@pytest.mark.parametrize("state", [UploadState.PENDING, UploadState.FAILED])
def test_pending_and_failed_can_start_uploading(state):
    assert mark_uploading(make_record(state)).upload_state == UploadState.UPLOADING


@pytest.mark.parametrize("state", [UploadState.UPLOADING, UploadState.UPLOADED])
def test_uploading_and_uploaded_cannot_restart(state):
    with pytest.raises(InvalidTransitionError):
        mark_uploading(make_record(state))


def test_uploading_resolves_to_any_outcome():
    uploading = make_record(UploadState.UPLOADING)
    for outcome in (UploadState.UPLOADED, UploadState.FAILED, UploadState.PENDING):
        assert transition(uploading, outcome).upload_state == outcome


def test_manual_is_never_started_automatically():
    record = make_record(target=UploadTarget.MANUAL)
    assert can_auto_upload(record) is False
    with pytest.raises(InvalidTransitionError):
        mark_uploading(record)


def test_pending_cannot_jump_to_uploaded():
    with pytest.raises(InvalidTransitionError):
        transition(make_record(), UploadState.UPLOADED)

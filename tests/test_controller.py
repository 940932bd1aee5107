import asyncio
import json
import os
import sys
from unittest.mock import AsyncMock

import pytest

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.capture.manager import PhotoCaptureManager
from app.common.errors import CapturePreparationError, TagWriteError
from app.controller import PROJECT_NOT_READY_MESSAGE, InspectionController
from app.models.photo import GeoFix, ProjectInfo
from app.providers.location import StaticLocationProvider
from app.providers.network import StaticNetworkStatus
from app.providers.preferences import PreferencesRepository
from app.schemas.enum import UploadState, UploadTarget
from app.upload.uploader import PhotoUploader

from conftest import make_jpeg

READY = ProjectInfo(project_name="Harbor Warehouse", valuer_name="J. Rivera", company_name="North Valuers")
FIX = GeoFix(latitude=51.5007, longitude=-0.1246, altitude=20.0, bearing=90.0)


@pytest.fixture
def controller(tmp_path, pictures_dir, uploads_root):
    return InspectionController(
        capture_manager=PhotoCaptureManager(pictures_dir),
        uploader=PhotoUploader(StaticNetworkStatus(wifi_connected=True), uploads_root),
        location_provider=StaticLocationProvider(FIX),
        preferences_repository=PreferencesRepository(tmp_path / "preferences.json"),
    )


async def capture(controller):
    preparation = await controller.prepare_capture()
    make_jpeg(preparation.file)
    return await controller.finalize_capture(preparation)


@pytest.mark.asyncio
async def test_prepare_requires_project_details(controller):
    controller.set_project_info(ProjectInfo(project_name="Only a project"))

    assert await controller.prepare_capture() is None
    assert controller.state.capture_error == PROJECT_NOT_READY_MESSAGE
    assert controller.state.is_capturing is False

    controller.clear_capture_error()
    assert controller.state.capture_error is None


@pytest.mark.asyncio
async def test_unwritable_pictures_dir_surfaces_preparation_error(controller):
    controller.set_project_info(READY)
    controller.capture_manager.prepare_output_file = AsyncMock(
        side_effect=CapturePreparationError("Unable to create pictures directory /readonly")
    )

    assert await controller.prepare_capture() is None
    assert controller.state.capture_error == "Unable to create pictures directory /readonly"
    assert controller.state.is_capturing is False


@pytest.mark.asyncio
async def test_prepare_builds_metadata_from_state(controller, pictures_dir):
    await controller.start()
    controller.set_project_info(READY)

    preparation = await controller.prepare_capture()

    assert controller.state.is_capturing is True
    assert preparation.file.parent == pictures_dir.resolve()
    assert preparation.file.name.startswith("IMG_")
    assert preparation.metadata.project_info == READY
    assert preparation.metadata.location == FIX
    assert preparation.metadata.include_compass is False
    # auto upload is off by default
    assert preparation.upload_target == UploadTarget.MANUAL
    assert controller.get_preparation(preparation.id) is preparation


@pytest.mark.asyncio
async def test_capture_failure_clears_preparation(controller):
    controller.set_project_info(READY)
    preparation = await controller.prepare_capture()

    state = controller.on_capture_failed(preparation.id, "Camera unavailable")

    assert state.is_capturing is False
    assert state.capture_error == "Camera unavailable"
    assert controller.get_preparation(preparation.id) is None


@pytest.mark.asyncio
async def test_finalize_without_auto_upload_registers_pending(controller):
    await controller.start()
    controller.set_project_info(READY)

    record = await capture(controller)

    assert record.upload_state == UploadState.PENDING
    assert record.upload_target == UploadTarget.MANUAL
    assert controller.state.photos[0].id == record.id
    assert controller.state.is_capturing is False


@pytest.mark.asyncio
async def test_finalize_with_auto_upload_transfers(controller, uploads_root):
    await controller.start()
    controller.set_project_info(READY)
    await controller.toggle_auto_upload(True)
    await controller.set_upload_target(UploadTarget.GOOGLE_DRIVE)
    await controller.set_keep_local_copy(False)

    record = await capture(controller)

    assert record.upload_state == UploadState.UPLOADED
    assert controller.state.photos[0].upload_state == UploadState.UPLOADED
    assert (uploads_root / "google-drive" / record.file_name).exists()
    assert not os.path.exists(record.file_path)


@pytest.mark.asyncio
async def test_wifi_deferral_leaves_photo_pending(controller, uploads_root):
    controller.uploader.network = StaticNetworkStatus(wifi_connected=False)
    await controller.start()
    controller.set_project_info(READY)
    await controller.toggle_auto_upload(True)
    await controller.set_upload_target(UploadTarget.CORPORATE_SERVER)

    record = await capture(controller)

    assert record.upload_state == UploadState.PENDING
    assert os.path.exists(record.file_path)

    # connectivity comes back and the user retries
    controller.uploader.network = StaticNetworkStatus(wifi_connected=True)
    retried = await controller.retry_upload(record.id)
    assert retried.upload_state == UploadState.UPLOADED


@pytest.mark.asyncio
async def test_tag_write_failure_deletes_partial_file(controller):
    await controller.start()
    controller.set_project_info(READY)
    preparation = await controller.prepare_capture()
    make_jpeg(preparation.file)
    controller.capture_manager.finalize = AsyncMock(side_effect=TagWriteError("exif segment too large"))

    assert await controller.finalize_capture(preparation) is None

    assert not preparation.file.exists()
    assert controller.state.capture_error == "exif segment too large"
    assert controller.state.is_capturing is False
    assert controller.state.photos == ()


@pytest.mark.asyncio
async def test_retry_is_ignored_for_manual_photos(controller):
    await controller.start()
    controller.set_project_info(READY)
    record = await capture(controller)
    controller.uploader.attempt_transfer = AsyncMock()

    assert await controller.retry_upload(record.id) is None
    assert await controller.retry_upload("IMG_unknown") is None
    controller.uploader.attempt_transfer.assert_not_called()


@pytest.mark.asyncio
async def test_concurrent_retry_runs_single_transfer(controller):
    await controller.start()
    controller.set_project_info(READY)
    await controller.toggle_auto_upload(True)
    await controller.set_upload_target(UploadTarget.GOOGLE_DRIVE)
    controller.uploader.network = StaticNetworkStatus(wifi_connected=False)
    record = await capture(controller)
    assert record.upload_state == UploadState.PENDING

    release = asyncio.Event()
    original = controller.uploader.attempt_transfer

    async def slow_transfer(*args):
        await release.wait()
        return await original(*args)

    controller.uploader.network = StaticNetworkStatus(wifi_connected=True)
    controller.uploader.attempt_transfer = AsyncMock(side_effect=slow_transfer)

    first = asyncio.create_task(controller.retry_upload(record.id))
    await asyncio.sleep(0)
    assert controller.state.photos[0].upload_state == UploadState.UPLOADING
    assert await controller.retry_upload(record.id) is None

    release.set()
    assert (await first).upload_state == UploadState.UPLOADED
    assert controller.uploader.attempt_transfer.await_count == 1


@pytest.mark.asyncio
async def test_removal_during_transfer_discards_result(controller):
    await controller.start()
    controller.set_project_info(READY)
    await controller.toggle_auto_upload(True)
    await controller.set_upload_target(UploadTarget.GOOGLE_DRIVE)
    controller.uploader.network = StaticNetworkStatus(wifi_connected=False)
    record = await capture(controller)

    release = asyncio.Event()
    original = controller.uploader.attempt_transfer

    async def slow_transfer(*args):
        await release.wait()
        return await original(*args)

    controller.uploader.attempt_transfer = AsyncMock(side_effect=slow_transfer)
    task = asyncio.create_task(controller.retry_upload(record.id))
    await asyncio.sleep(0)

    await controller.remove_photo(record.id)
    release.set()

    assert await task is None
    assert controller.state.photos == ()


@pytest.mark.asyncio
async def test_start_recovers_existing_photos_and_preferences(controller, tmp_path, pictures_dir):
    (tmp_path / "preferences.json").write_text(json.dumps({"auto_upload": True, "upload_target": "GOOGLE_DRIVE"}))
    make_jpeg(pictures_dir / "IMG_1.jpg")

    state = await controller.start()

    assert state.preferences.auto_upload_enabled is True
    assert state.preferences.upload_target == UploadTarget.GOOGLE_DRIVE
    assert [p.id for p in state.photos] == ["IMG_1"]


@pytest.mark.asyncio
async def test_preferences_are_persisted(controller, tmp_path):
    await controller.set_wifi_only_uploads(False)
    await controller.set_include_compass(True)

    saved = json.loads((tmp_path / "preferences.json").read_text())
    assert saved["wifi_only"] is False
    assert saved["include_compass"] is True

    reloaded = await PreferencesRepository(tmp_path / "preferences.json").load()
    assert reloaded.wifi_only_uploads is False
    assert reloaded.include_compass_direction is True
    assert controller.state.preferences == reloaded

import os
import sys
from datetime import datetime, timezone

import piexif
import pytest

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.capture.manager import PhotoCaptureManager
from app.common.errors import TagWriteError
from app.models.photo import AppPreferences, GeoFix, PhotoMetadata, ProjectInfo
from app.schemas.enum import UploadState, UploadTarget
from app.schemas.photo import GeoFixSchema

from conftest import make_jpeg

PROJECT = ProjectInfo(
    project_name="Harbor Warehouse",
    client_name="Acme Logistics",
    valuer_name="J. Rivera",
    company_name="North Valuers",
)
TS = datetime(2024, 5, 17, 8, 30, 15, tzinfo=timezone.utc)
SECOND_TOLERANCE = 1.0 / 10000 / 3600


@pytest.mark.asyncio
async def test_prepare_output_file_is_named_by_epoch_millis(tmp_path):
    pictures = tmp_path / "nested" / "pictures"
    manager = PhotoCaptureManager(pictures)

    ts = datetime(2024, 5, 17, 8, 30, 15, 123000, tzinfo=timezone.utc)
    path = await manager.prepare_output_file(ts)

    assert pictures.is_dir()
    assert path.parent == pictures.resolve()
    assert path.name == "IMG_1715934615123.jpg"


@pytest.mark.asyncio
async def test_finalize_returns_record_and_survives_recovery(pictures_dir, raw_jpeg):
    manager = PhotoCaptureManager(pictures_dir)
    metadata = PhotoMetadata(
        timestamp=TS,
        project_info=PROJECT,
        location=GeoFix(latitude=48.858370, longitude=2.294481, altitude=35.2, bearing=120.5),
        include_compass=True,
    )

    record = await manager.finalize(raw_jpeg, metadata, AppPreferences(), UploadTarget.GOOGLE_DRIVE)

    assert record.id == "IMG_1700000000000"
    assert record.file_path == str(raw_jpeg.resolve())
    assert record.upload_state == UploadState.PENDING
    assert record.upload_target == UploadTarget.GOOGLE_DRIVE
    assert record.altitude_meters == 35.2
    assert record.compass_bearing == 120.5

    recovered = await manager.list_recovered_photos()
    assert len(recovered) == 1
    back = recovered[0]
    assert back.id == record.id
    assert back.timestamp == TS
    assert back.latitude == pytest.approx(48.858370, abs=SECOND_TOLERANCE)
    assert back.longitude == pytest.approx(2.294481, abs=SECOND_TOLERANCE)
    assert back.altitude_meters == pytest.approx(35.2)
    assert back.compass_bearing == pytest.approx(120.5)
    assert back.project_info == PROJECT
    # provenance is not stored in the file
    assert back.upload_state == UploadState.PENDING
    assert back.upload_target == UploadTarget.MANUAL


@pytest.mark.asyncio
async def test_finalize_without_altitude_or_compass(pictures_dir, raw_jpeg):
    manager = PhotoCaptureManager(pictures_dir)
    metadata = PhotoMetadata(
        timestamp=TS,
        project_info=PROJECT,
        location=GeoFix(latitude=-1.5, longitude=-2.5, bearing=10.0),
        include_compass=False,
    )

    record = await manager.finalize(raw_jpeg, metadata, AppPreferences(), UploadTarget.MANUAL)
    assert record.altitude_meters is None
    assert record.compass_bearing is None

    back = (await manager.list_recovered_photos())[0]
    assert back.altitude_meters is None
    assert back.compass_bearing is None
    assert back.latitude == pytest.approx(-1.5, abs=SECOND_TOLERANCE)


@pytest.mark.asyncio
async def test_finalize_without_location(pictures_dir, raw_jpeg):
    manager = PhotoCaptureManager(pictures_dir)
    metadata = PhotoMetadata(timestamp=TS, project_info=PROJECT, location=None, include_compass=True)

    record = await manager.finalize(raw_jpeg, metadata, AppPreferences(), UploadTarget.MANUAL)

    assert record.latitude is None and record.longitude is None
    back = (await manager.list_recovered_photos())[0]
    assert back.latitude is None and back.longitude is None


@pytest.mark.asyncio
async def test_finalize_overwrites_in_place(pictures_dir, raw_jpeg):
    manager = PhotoCaptureManager(pictures_dir)
    before = raw_jpeg.read_bytes()

    await manager.finalize(raw_jpeg, PhotoMetadata(timestamp=TS, project_info=PROJECT), AppPreferences(), UploadTarget.MANUAL)

    assert sorted(p.name for p in pictures_dir.iterdir()) == [raw_jpeg.name]
    assert raw_jpeg.read_bytes() != before


@pytest.mark.asyncio
async def test_finalize_undecodable_file_raises_tag_error(pictures_dir):
    path = pictures_dir / "IMG_5.jpg"
    path.write_bytes(b"\x00\x01 truncated")
    manager = PhotoCaptureManager(pictures_dir)

    with pytest.raises(TagWriteError):
        await manager.finalize(path, PhotoMetadata(timestamp=TS, project_info=PROJECT), AppPreferences(), UploadTarget.MANUAL)


@pytest.mark.asyncio
async def test_negative_bearing_is_normalized_not_fatal(pictures_dir, raw_jpeg):
    manager = PhotoCaptureManager(pictures_dir)
    metadata = PhotoMetadata(
        timestamp=TS,
        project_info=PROJECT,
        location=GeoFixSchema(latitude=1.0, longitude=2.0, bearing=-10.0).to_model(),
        include_compass=True,
    )

    record = await manager.finalize(raw_jpeg, metadata, AppPreferences(), UploadTarget.MANUAL)

    assert raw_jpeg.exists()
    assert record.compass_bearing == 350.0
    back = (await manager.list_recovered_photos())[0]
    assert back.compass_bearing == pytest.approx(350.0)


@pytest.mark.asyncio
async def test_truncated_image_still_gets_tags(pictures_dir):
    data = make_jpeg(pictures_dir / "full.jpg").read_bytes()
    (pictures_dir / "full.jpg").unlink()
    path = pictures_dir / "IMG_7.jpg"
    # keep the headers and a sliver of scan data so Pillow cannot decode the pixels
    path.write_bytes(data[: data.index(b"\xff\xda") + 40])
    manager = PhotoCaptureManager(pictures_dir)

    record = await manager.finalize(path, PhotoMetadata(timestamp=TS, project_info=PROJECT), AppPreferences(), UploadTarget.MANUAL)

    assert record.id == "IMG_7"
    tags = piexif.load(str(path))
    assert tags["0th"][piexif.ImageIFD.ImageDescription] == b"Harbor Warehouse | J. Rivera | North Valuers"
    assert piexif.ExifIFD.UserComment in tags["Exif"]
    recovered = await manager.list_recovered_photos()
    assert [p.id for p in recovered] == ["IMG_7"]
    assert recovered[0].project_info == PROJECT

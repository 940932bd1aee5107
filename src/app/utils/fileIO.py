import json
import logging
from pathlib import Path

import aiofiles

logger = logging.getLogger(__name__)


async def read_file(filepath: str):
    file_path_obj = Path(filepath)
    if not file_path_obj.is_file():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = file_path_obj.suffix.lower()
    async with aiofiles.open(filepath, "r", encoding="utf-8") as f:
        content = await f.read()
        if not content:
            return {} if suffix == ".json" else ""
        if suffix == ".json":
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                raise ValueError(f"JSON decode error: {e} - file: {filepath}") from e
            return data
        else:
            return content


async def write_file(filepath: str, data) -> None:
    file_path_obj = Path(filepath)
    file_path_obj.parent.mkdir(parents=True, exist_ok=True)

    suffix = file_path_obj.suffix.lower()
    async with aiofiles.open(filepath, "w", encoding="utf-8") as f:
        if suffix == ".json":
            await f.write(json.dumps(data, ensure_ascii=False, indent=4))
        else:
            await f.write(str(data))
    logger.info(f"Write file successfully! File: {filepath}")


async def write_bytes(filepath: str, data: bytes) -> None:
    file_path_obj = Path(filepath)
    file_path_obj.parent.mkdir(parents=True, exist_ok=True)

    async with aiofiles.open(filepath, "wb") as f:
        await f.write(data)
    logger.debug(f"Wrote {len(data)} bytes to {filepath}")

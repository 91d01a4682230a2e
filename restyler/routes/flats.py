from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
import os
from typing import List

from ..config import Settings
from ..models.schemas import Flat, FlatCreate, FlatDetail, FlatUpdate, Room, RoomCreate
from ..services.database import FlatRepository, PostgrestError
from ..services.errors import StorageUploadError
from ..services.storage import StoragePublisher
from ..utils.logger import logger
from .deps import get_publisher, get_repository, get_settings

router = APIRouter(prefix="/api", tags=["flats"])

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def _database_error(e: PostgrestError) -> HTTPException:
    logger.error(f"Database error: {e.message}")
    return HTTPException(status_code=502, detail=f"데이터베이스 오류: {e.message}")


@router.post("/flats", response_model=FlatDetail, status_code=201)
async def create_flat(request: FlatCreate, repo: FlatRepository = Depends(get_repository)):
    """집과 방 목록 생성"""
    try:
        return await repo.create_flat(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PostgrestError as e:
        raise _database_error(e)


@router.get("/flats", response_model=List[Flat])
async def list_flats(user_id: str, repo: FlatRepository = Depends(get_repository)):
    try:
        return await repo.list_flats(user_id)
    except PostgrestError as e:
        raise _database_error(e)


@router.get("/flats/{flat_id}", response_model=FlatDetail)
async def get_flat(flat_id: str, repo: FlatRepository = Depends(get_repository)):
    """집 정보 + 방 목록 (생성 순)"""
    try:
        flat = await repo.get_flat(flat_id)
    except PostgrestError as e:
        raise _database_error(e)
    if flat is None:
        raise HTTPException(status_code=404, detail="집을 찾을 수 없습니다.")
    return flat


@router.patch("/flats/{flat_id}", response_model=Flat)
async def rename_flat(flat_id: str, request: FlatUpdate, repo: FlatRepository = Depends(get_repository)):
    try:
        flat = await repo.rename_flat(flat_id, request.building_name)
    except PostgrestError as e:
        raise _database_error(e)
    if flat is None:
        raise HTTPException(status_code=404, detail="집을 찾을 수 없습니다.")
    return flat


@router.delete("/flats/{flat_id}")
async def delete_flat(flat_id: str, repo: FlatRepository = Depends(get_repository)):
    try:
        deleted = await repo.delete_flat(flat_id)
    except PostgrestError as e:
        raise _database_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="집을 찾을 수 없습니다.")
    return {"success": True}


@router.post("/flats/{flat_id}/rooms", response_model=Room, status_code=201)
async def add_room(flat_id: str, request: RoomCreate, repo: FlatRepository = Depends(get_repository)):
    """방 추가 (집의 방 개수 갱신)"""
    try:
        room = await repo.add_room(flat_id, request)
    except PostgrestError as e:
        raise _database_error(e)
    if room is None:
        raise HTTPException(status_code=404, detail="집을 찾을 수 없습니다.")
    return room


@router.get("/rooms/{room_id}", response_model=Room)
async def get_room(room_id: str, repo: FlatRepository = Depends(get_repository)):
    try:
        room = await repo.get_room(room_id)
    except PostgrestError as e:
        raise _database_error(e)
    if room is None:
        raise HTTPException(status_code=404, detail="방을 찾을 수 없습니다.")
    return room


@router.delete("/rooms/{room_id}")
async def delete_room(room_id: str, repo: FlatRepository = Depends(get_repository)):
    try:
        deleted = await repo.delete_room(room_id)
    except PostgrestError as e:
        raise _database_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="방을 찾을 수 없습니다.")
    return {"success": True}


@router.post("/rooms/{room_id}/image", response_model=Room)
async def upload_room_image(
    room_id: str,
    file: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
    repo: FlatRepository = Depends(get_repository),
    publisher: StoragePublisher = Depends(get_publisher),
):
    """방 원본 사진 업로드 (파일 크기 제한 포함)"""
    try:
        logger.info(f"Upload requested for room {room_id}: {file.filename}")

        # 파일 확장자 검증
        file_ext = os.path.splitext(file.filename or "")[1].lower()
        if file_ext not in settings.allowed_extensions:
            logger.warning(f"Invalid file extension: {file_ext}")
            raise HTTPException(
                status_code=400,
                detail=f"지원하지 않는 파일 형식입니다. 허용된 형식: {', '.join(settings.allowed_extensions)}"
            )

        # 파일 크기 제한 (청크로 읽으면서 검증)
        max_size = settings.max_upload_size_mb * 1024 * 1024
        content = bytearray()
        chunk_size = 1024 * 1024

        while True:
            chunk = await file.read(chunk_size)
            if not chunk:
                break
            content.extend(chunk)
            if len(content) > max_size:
                logger.warning(f"File too large: {len(content)} bytes")
                raise HTTPException(
                    status_code=413,
                    detail=f"파일 크기가 너무 큽니다. 최대 {settings.max_upload_size_mb}MB까지 허용됩니다."
                )

        if await repo.get_room(room_id) is None:
            raise HTTPException(status_code=404, detail="방을 찾을 수 없습니다.")

        public_url = await publisher.publish_original(
            bytes(content),
            room_id,
            file_ext,
            CONTENT_TYPES.get(file_ext, "application/octet-stream"),
        )
        room = await repo.set_original_image(room_id, public_url)
        if room is None:
            raise HTTPException(status_code=404, detail="방을 찾을 수 없습니다.")

        logger.info(f"Original image stored for room {room_id} ({len(content)} bytes)")
        return room

    except HTTPException:
        raise
    except StorageUploadError as e:
        logger.error(f"Upload failed: {e.message}")
        raise HTTPException(status_code=500, detail=f"파일 업로드 실패: {e.message}")
    except PostgrestError as e:
        raise _database_error(e)
    except Exception as e:
        logger.error(f"Upload failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"파일 업로드 실패: {str(e)}")

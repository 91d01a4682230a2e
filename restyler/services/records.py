"""방 레코드에 변환 결과 기록"""
from .database import PostgrestClient, PostgrestError
from .errors import RecordUpdateError
from ..utils.logger import logger


class RoomRecordUpdater:
    """transformed_image_url과 interior_style을 항상 한 번의 update로 기록"""

    def __init__(self, db: PostgrestClient):
        self.db = db

    async def record_transformation(self, room_id: str, transformed_image_url: str, interior_style: str) -> None:
        try:
            rows = await self.db.update(
                "rooms",
                {
                    "transformed_image_url": transformed_image_url,
                    "interior_style": interior_style,
                },
                {"id": room_id},
            )
        except PostgrestError as e:
            raise RecordUpdateError(f"Failed to update room record: {e.message}")

        if not rows:
            raise RecordUpdateError(f"Failed to update room record: room {room_id} not found")
        logger.info(f"Room {room_id} updated with {interior_style} transformation")

"""Supabase PostgREST 클라이언트와 flats/rooms 저장소"""
from typing import Any, Dict, List, Optional

import httpx

from ..models.schemas import Flat, FlatCreate, FlatDetail, Room, RoomCreate
from ..utils.logger import logger


class PostgrestError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PostgrestClient:
    """/rest/v1 테이블 CRUD"""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    @staticmethod
    def _filters(filters: Dict[str, Any]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in filters.items()}

    async def _send(self, method: str, table: str, **kwargs) -> List[Dict[str, Any]]:
        try:
            response = await self.client.request(method, self._url(table), **kwargs)
        except httpx.HTTPError as e:
            raise PostgrestError(f"Database request failed: {e}")

        if response.is_error:
            try:
                body = response.json()
                message = body.get("message") or str(body)
            except ValueError:
                message = response.text
            raise PostgrestError(message, status_code=response.status_code)

        if not response.content:
            return []
        return response.json()

    async def select(self, table: str, filters: Dict[str, Any], order: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"select": "*", **self._filters(filters)}
        if order:
            params["order"] = order
        return await self._send("GET", table, params=params, headers=self._headers())

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await self._send("POST", table, json=rows, headers=self._headers("return=representation"))

    async def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._send(
            "PATCH",
            table,
            params=self._filters(filters),
            json=values,
            headers=self._headers("return=representation"),
        )

    async def delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._send(
            "DELETE",
            table,
            params=self._filters(filters),
            headers=self._headers("return=representation"),
        )


class FlatRepository:
    """집/방 CRUD (인증은 범위 밖, user_id는 호출자가 전달)"""

    def __init__(self, db: PostgrestClient):
        self.db = db

    async def create_flat(self, request: FlatCreate) -> FlatDetail:
        valid_rooms = [r for r in request.rooms if r.room_name.strip() and r.sq_meters]
        if not valid_rooms:
            raise ValueError("At least one room is required")

        flat_rows = await self.db.insert("flats", [{
            "user_id": request.user_id,
            "building_name": request.building_name,
            "flat_number": request.flat_number,
            "sq_meters": request.sq_meters,
            "number_of_rooms": len(valid_rooms),
        }])
        flat = Flat(**flat_rows[0])

        room_rows = await self.db.insert("rooms", [
            {"flat_id": flat.id, "room_name": r.room_name, "sq_meters": r.sq_meters}
            for r in valid_rooms
        ])
        logger.info(f"Flat created: {flat.id} with {len(room_rows)} rooms")
        return FlatDetail(**flat.model_dump(), rooms=[Room(**row) for row in room_rows])

    async def list_flats(self, user_id: str) -> List[Flat]:
        rows = await self.db.select("flats", {"user_id": user_id}, order="created_at.desc")
        return [Flat(**row) for row in rows]

    async def get_flat(self, flat_id: str) -> Optional[FlatDetail]:
        rows = await self.db.select("flats", {"id": flat_id})
        if not rows:
            return None
        rooms = await self.list_rooms(flat_id)
        return FlatDetail(**rows[0], rooms=rooms)

    async def rename_flat(self, flat_id: str, building_name: str) -> Optional[Flat]:
        rows = await self.db.update("flats", {"building_name": building_name}, {"id": flat_id})
        return Flat(**rows[0]) if rows else None

    async def delete_flat(self, flat_id: str) -> bool:
        # 방을 먼저 지운다 (cascade는 호출자 책임)
        await self.db.delete("rooms", {"flat_id": flat_id})
        rows = await self.db.delete("flats", {"id": flat_id})
        return bool(rows)

    async def list_rooms(self, flat_id: str) -> List[Room]:
        rows = await self.db.select("rooms", {"flat_id": flat_id}, order="created_at.asc")
        return [Room(**row) for row in rows]

    async def get_room(self, room_id: str) -> Optional[Room]:
        rows = await self.db.select("rooms", {"id": room_id})
        return Room(**rows[0]) if rows else None

    async def add_room(self, flat_id: str, request: RoomCreate) -> Optional[Room]:
        flat = await self.get_flat(flat_id)
        if flat is None:
            return None
        rows = await self.db.insert("rooms", [{
            "flat_id": flat_id,
            "room_name": request.room_name,
            "sq_meters": request.sq_meters,
        }])
        await self.db.update("flats", {"number_of_rooms": len(flat.rooms) + 1}, {"id": flat_id})
        return Room(**rows[0])

    async def delete_room(self, room_id: str) -> bool:
        room = await self.get_room(room_id)
        if room is None:
            return False
        await self.db.delete("rooms", {"id": room_id})

        flat_rows = await self.db.select("flats", {"id": room.flat_id})
        if flat_rows:
            remaining = max(flat_rows[0].get("number_of_rooms", 1) - 1, 0)
            await self.db.update("flats", {"number_of_rooms": remaining}, {"id": room.flat_id})
        return True

    async def set_original_image(self, room_id: str, url: str) -> Optional[Room]:
        rows = await self.db.update("rooms", {"original_image_url": url}, {"id": room_id})
        return Room(**rows[0]) if rows else None

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict


class StyleOption(BaseModel):
    """인테리어 스타일 옵션"""
    id: str
    name: str
    description: str


class CamelModel(BaseModel):
    """프론트엔드와 주고받는 camelCase JSON"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransformRequest(CamelModel):
    """변환 요청 (필수값 검증은 파이프라인에서 수행)"""
    image_url: Optional[str] = None
    interior_style: Optional[str] = None
    room_id: Optional[str] = None


class TransformResult(CamelModel):
    """변환 결과 (성공 또는 분류된 실패)"""
    success: bool
    transformed_image_url: Optional[str] = None
    interior_style: Optional[str] = None
    room_id: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None
    hint: Optional[str] = None
    setup_instructions: Optional[Dict[str, str]] = None
    status_code: int = Field(default=200, exclude=True)


class FlatBase(BaseModel):
    building_name: str
    flat_number: str
    sq_meters: float


class RoomCreate(BaseModel):
    """방 추가 요청"""
    room_name: str
    sq_meters: float


class FlatCreate(FlatBase):
    """집 생성 요청 (최소 1개의 방 포함)"""
    user_id: str
    rooms: List[RoomCreate]


class FlatUpdate(BaseModel):
    building_name: str


class Room(BaseModel):
    """방 레코드"""
    id: str
    flat_id: str
    room_name: str
    sq_meters: float
    original_image_url: Optional[str] = None
    transformed_image_url: Optional[str] = None
    interior_style: Optional[str] = None
    created_at: Optional[str] = None


class Flat(FlatBase):
    """집 레코드"""
    id: str
    user_id: str
    number_of_rooms: int = 0
    created_at: Optional[str] = None


class FlatDetail(Flat):
    rooms: List[Room] = []

"""Request and response shapes for the AI endpoints."""

from typing import Literal, Optional

from pydantic import Field

from denidom.schemas import CamelModel


class ParsedWork(CamelModel):
    description: str
    category: str = 'general'
    keywords: list[str] = []
    estimated_quantity: Optional[float] = None
    unit: Optional[str] = None


class ParsedRequest(CamelModel):
    project_type: Optional[str] = None
    total_area: Optional[float] = None
    room_count: Optional[int] = None
    works: list[ParsedWork] = []


class GenerateEstimateRequest(CamelModel):
    description: str = Field(min_length=10)
    estimate_type: Literal['FER', 'COMMERCIAL', 'MIXED'] = 'COMMERCIAL'
    area: Optional[float] = Field(default=None, gt=0)
    region: Optional[str] = None


class CustomPriceRequest(CamelModel):
    normative_id: Optional[str] = None
    code: Optional[str] = None
    name: str
    unit: str
    category: Optional[str] = None
    price: float = Field(gt=0)
    notes: Optional[str] = None


class CommercialPriceRow(CustomPriceRequest):
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    cost_price: Optional[float] = None
    margin_percent: Optional[float] = None
    region: Optional[str] = None
    source: Optional[str] = None


class ImportPricesRequest(CamelModel):
    prices: list[CommercialPriceRow]


class VoiceContext(CamelModel):
    current_rooms: Optional[list[str]] = None
    current_items: Optional[list[str]] = None
    project_type: Optional[str] = None


class VoiceRequest(CamelModel):
    command: str = Field(min_length=1)
    context: Optional[VoiceContext] = None
    use_ai: bool = False


class ManualRoom(CamelModel):
    name: str
    area: float = Field(ge=0)
    type: Optional[str] = None


class BlueprintRequest(CamelModel):
    image_base64: Optional[str] = None
    image_type: Optional[str] = None
    project_type: Optional[str] = None
    include_work_suggestions: bool = True
    manual_rooms: Optional[list[ManualRoom]] = None


class PredictItem(CamelModel):
    id: str = ''
    name: str = ''
    category: str = 'general'
    current_price: Optional[float] = None
    price: Optional[float] = None
    unit: str = 'шт'


class PredictRequest(CamelModel):
    items: list[PredictItem] = Field(min_length=1)
    region: Optional[str] = None
    forecast_months: int = Field(default=3, ge=1, le=24)


class CurrentItem(CamelModel):
    name: str
    category: str = 'general'
    price: float


class RecommendationsRequest(CamelModel):
    project_type: str = Field(min_length=1)
    total_area: float = Field(gt=0)
    rooms: Optional[list[str]] = None
    current_items: Optional[list[CurrentItem]] = None
    budget: Optional[float] = None
    region: Optional[str] = None
    preferences: Optional[list[str]] = None

from typing import Literal, Optional

from pydantic import Field

from denidom.schemas import CamelModel

ESTIMATE_TYPES = Literal['FER', 'TER', 'GESN', 'TSN', 'COMMERCIAL']


class EstimateItemSchema(CamelModel):
    id: str
    name: str = Field(min_length=1)
    unit: str
    quantity: float = Field(ge=0)
    price: float = Field(ge=0)
    coefficient: Optional[float] = Field(default=None, ge=0)


class CalculationOptions(CamelModel):
    overhead_rate: float = Field(default=0.12, ge=0, le=1)
    profit_rate: float = Field(default=0.08, ge=0, le=1)
    vat_rate: float = Field(default=0.20, ge=0, le=1)
    include_vat: bool = True


class CalculateRequest(CamelModel):
    items: list[EstimateItemSchema]
    options: CalculationOptions = Field(default_factory=CalculationOptions)


class EstimateCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: ESTIMATE_TYPES = 'COMMERCIAL'
    items: list[EstimateItemSchema] = Field(default_factory=list)
    options: CalculationOptions = Field(default_factory=CalculationOptions)
    project_id: Optional[str] = None
    user_id: Optional[str] = None


class EstimateUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[ESTIMATE_TYPES] = None
    items: Optional[list[EstimateItemSchema]] = None
    options: Optional[CalculationOptions] = None

"""Portfolio schemas"""
from pydantic import BaseModel

from venturehub.schemas.common import BigInt
from venturehub.schemas.venture import VentureSummary


class HoldingResponse(BaseModel):
    venture: VentureSummary
    shares_owned: BigInt  # 18-decimal share units
    current_price: BigInt  # 6-decimal fiat units per whole share
    current_value: BigInt  # 6-decimal fiat units
    initial_price: BigInt

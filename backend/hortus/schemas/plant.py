from typing import Optional
from pydantic import BaseModel, Field

# Only value written today; no enumeration of event kinds exists yet.
DEFAULT_EVENT_TYPE = 0


class PlantShortDesc(BaseModel):
    id: int
    common_name: str


class PlantLog(BaseModel):
    id: int
    plant_id: int
    desc: str
    event_type: int = DEFAULT_EVENT_TYPE


class Plant(BaseModel):
    id: int
    common_name: str
    generic_name: Optional[str] = None
    specific_name: Optional[str] = None
    logs: list[PlantLog] = Field(default_factory=list)

from pydantic import BaseModel


class BuildingOut(BaseModel):
    id: str
    department_name: str
    occupancy_count: int

    class Config:
        from_attributes = True

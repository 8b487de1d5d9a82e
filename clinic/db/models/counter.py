from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from uuid import UUID, uuid4

class Counter(SQLModel, table=True):
    """Named sequence per period, advanced with a single UPDATE ... RETURNING."""
    __tablename__ = "counters"
    __table_args__ = (UniqueConstraint("name", "period", name="uq_counter_name_period"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    period: str
    last_value: int = Field(default=0)

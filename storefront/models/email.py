from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel


class EmailLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    to_email: str
    subject: str
    html: str
    event: str = Field(index=True)
    order_id: Optional[int] = Field(default=None, index=True)

    status: str = Field(default="queued", index=True)  # queued / sending / sent / failed
    attempts: int = 0
    last_error: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    sent_at: Optional[datetime] = None

from datetime import datetime

import sqlmodel

from app.utils.misc import get_utc_now


class BaseModel(sqlmodel.SQLModel):
    created_at: datetime = sqlmodel.Field(
        default_factory=get_utc_now, sa_type=sqlmodel.DateTime(timezone=True)
    )

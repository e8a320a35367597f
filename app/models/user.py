import sqlmodel

from ._base import BaseModel


class User(BaseModel, table=True):
    __tablename__: str = "users"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    username: str = sqlmodel.Field(max_length=30, unique=True, index=True)
    password_hash: str

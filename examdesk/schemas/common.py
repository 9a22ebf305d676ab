from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Shape of every JSON response body"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None

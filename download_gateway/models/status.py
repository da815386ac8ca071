"""
Status response model.
"""
from .base import ModelBase


class StatusResponse(ModelBase):
    status: str = "ok"
    version: str

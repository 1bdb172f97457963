"""Shared pydantic base for outcome records, log messages and run profiles."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model; updates go through ``model_copy``."""

    model_config = ConfigDict(frozen=True)

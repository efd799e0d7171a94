import logging
from typing import Tuple

from pydantic import BaseModel, ValidationError, field_validator

from HistoryTracker import MIN_CAPACITY, MAX_CAPACITY, DEFAULT_CAPACITY


logger = logging.getLogger(__name__)


class TrackerConfig(BaseModel):
    """
    User settings of the selection tracker.

    `max_history_count` behaves like the editor field it backs: any integer is accepted
    and clamped into [1, 100]. Values that are not integers fail validation.
    """
    max_history_count: int = DEFAULT_CAPACITY

    @field_validator('max_history_count')
    @classmethod
    def clamp_history_count(cls, value: int) -> int:
        clamped = max(MIN_CAPACITY, min(value, MAX_CAPACITY))
        if clamped != value:
            logger.warning(f'max_history_count {value} out of range, clamped to {clamped}')
        return clamped

    @classmethod
    def from_dict(cls, data: dict) -> Tuple['TrackerConfig', str]:
        """
        Build a config from a raw settings dict.

        Returns:
            Tuple[TrackerConfig, str]:
              - On success: (config, empty string)
              - On failure: (default config, semicolon-delimited error messages)
        """
        try:
            return cls.model_validate(data or {}), ''
        except ValidationError as e:
            error_details = []
            for error in e.errors():
                field_path = ".".join(map(str, error['loc']))
                error_details.append(f"Field [{field_path}]: {error['msg']} (Type error: {error['type']})")
            error_str = "; ".join(error_details)
            logger.error(f'Tracker config verification fail: {error_str}')
            return cls(), error_str

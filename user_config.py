import json
import logging
import os
import threading
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'SRS_CONFIG'


class StudyConfig(BaseModel):
    class Config:
        extra = 'forbid'

    min_e_factor: float = Field(1.3, gt=0, description="Lower bound of the ease factor")
    max_e_factor: Optional[float] = Field(2.5, gt=0, description="Upper bound of the ease factor, null for none")
    first_exposure: Literal['view', 'rating'] = Field('view', description="What moves a new word to learning")
    debounce_seconds: float = Field(1.0, ge=0, description="Minimum time between two ratings of one word")
    mature_interval: int = Field(21, ge=1)
    random_future_fraction: float = Field(0.1, ge=0, le=1)
    overdue_weight: float = Field(2.0, gt=0)
    browse_sort: Literal['alphabetical', 'status', 'reviews', 'recent'] = 'alphabetical'
    ui_language: str = 'english'

    @model_validator(mode='after')
    def check_e_factor_bounds(self):
        if self.max_e_factor is not None and self.max_e_factor < self.min_e_factor:
            raise ValueError('max_e_factor must not be lower than min_e_factor')
        return self


class UserConfig:
    def __init__(self, path: Optional[str] = None):
        self.data_path = path or os.getenv(CONFIG_ENV_VAR)
        if self.data_path is not None and os.path.exists(self.data_path):
            with open(self.data_path, 'r', encoding='utf-8') as fp:
                self._config = StudyConfig.model_validate(json.loads(fp.read()))
        else:
            if self.data_path is not None:
                logger.info(f'Config file {self.data_path} not found, using defaults.')
            self._config = StudyConfig()
        self._lock = threading.Lock()

    def get_config(self) -> StudyConfig:
        self._lock.acquire()
        cfg_cpy = self._config.model_copy()
        self._lock.release()
        return cfg_cpy

    def set_value(self, key: str, value) -> None:
        self._lock.acquire()
        data = self._config.model_dump()
        data[key] = value
        try:
            self._config = StudyConfig.model_validate(data)
        finally:
            self._lock.release()
        if self.data_path is not None:
            data_str = json.dumps(self._config.model_dump(), indent='\t', ensure_ascii=False)
            with open(self.data_path, 'w', encoding='utf-8') as fp:
                fp.write(data_str)

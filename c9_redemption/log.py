"""
로깅 유틸리티

표준 logging 위에 패키지 공통 포맷/레벨을 적용한 로거를 제공합니다.
"""

import logging
from functools import lru_cache
from logging import Logger

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@lru_cache(None)
def get_logger(name: str = "c9_redemption") -> Logger:
    """패키지 로거 조회

    최초 호출 시에만 콘솔 핸들러를 붙이고, 이후에는 같은 로거를 반환합니다.

    Args:
        name: 로거 이름 (보통 모듈의 ``__name__``)

    Returns:
        설정된 Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger

"""로깅 설정"""
import logging
import sys
from pathlib import Path

from ..config import settings


def setup_logger(name: str, level: str = "INFO", log_dir: Path = Path("logs")) -> logging.Logger:
    """구조화된 로거 설정"""

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # 이미 핸들러가 있으면 추가하지 않음 (중복 방지)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 콘솔 핸들러
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # 파일 핸들러
    log_dir.mkdir(exist_ok=True)
    file_handler = logging.FileHandler(log_dir / "app.log")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def mask_secret(value: str, visible: int = 8) -> str:
    """키는 앞 몇 글자만 로그에 남긴다"""
    if not value:
        return "NOT SET"
    return f"SET ({value[:visible]}...)"


# 전역 로거 인스턴스
logger = setup_logger("room_restyler", settings.log_level)

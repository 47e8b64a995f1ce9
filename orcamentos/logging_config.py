# orcamentos/logging_config.py
import sys

from loguru import logger

_FORMATO = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)


def setup_logging(level: str = "INFO") -> None:
    """Troca o handler padrão do loguru por um único sink em stderr."""
    logger.remove()
    logger.add(sys.stderr, format=_FORMATO, level=level.upper(), backtrace=True, diagnose=False)

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from lingolife.config.settings import Settings, settings as default_settings

def setup_logging(config: Settings = None):
    """配置日志系统，控制台和滚动文件同时输出"""
    settings = config or default_settings

    # 获取根日志记录器
    root_logger = logging.getLogger()

    # 清除已有的处理器，避免重复配置
    root_logger.handlers.clear()

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root_logger.setLevel(level)

    # 创建日志目录
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(settings.LOG_FORMAT)

    # 创建控制台处理器
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # 创建文件处理器
    file_handler = RotatingFileHandler(
        log_dir / "lingolife.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # 设置特定库的日志级别
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger.info("日志系统初始化完成")

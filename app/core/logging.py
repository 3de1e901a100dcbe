# app/core/logging.py
import logging
import sys
from contextvars import ContextVar

# 当前处理中的批次号；编排器 / 删除流程进入批次时设置，asyncio 子任务自动继承
batch_id_var: ContextVar[str] = ContextVar("batch_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(batch_id)s] %(message)s"


class BatchContextFilter(logging.Filter):
    """给每条记录补上 batch_id 字段（不在批次里时为 "-"）。"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "batch_id"):
            record.batch_id = batch_id_var.get()
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    根 logger 只挂一个 stdout handler；重复调用不会叠加输出。
    SQL 日志只在 DEBUG 下打开，远端 HTTP 客户端的逐请求日志压到 WARNING。
    """
    lvl = level.upper()
    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(BatchContextFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if lvl == "DEBUG" else logging.WARNING)

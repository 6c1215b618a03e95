from inspect import getfile, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


MASK = '********'
MAX_CONTENT_LENGTH = 500

# key='value' / key="value" / key=value pairs inside a repr
_SENSITIVE_PAIR_PATTERN = re.compile(
    r'(\b(?:' + '|'.join(sorted(SENSITIVE_KEYWORDS)) + r")\b\s*[=:]\s*)('[^']*'|\"[^\"]*\"|[^,)\s]+)",
    re.IGNORECASE,
)


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def enter_call() -> None:
    call_depth_var.set(call_depth_var.get() + 1)


def reset_call_depth() -> None:
    layer = call_depth_var.get() - 1
    call_depth_var.set(layer)
    if layer <= 0:
        chain_start_time_var.set(0)


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    target = getattr(func, '__func__', func)
    try:
        lineno = getsourcelines(target)[1]
    except (OSError, TypeError):
        lineno = 0
    return f'{basename(getfile(target))}::{func.__qualname__}:{lineno}'


def mask_sensitive(data: Any) -> Any:
    data_str = str(data)
    masked = _SENSITIVE_PAIR_PATTERN.sub(rf"\1'{MASK}'", data_str)
    return data if masked == data_str else masked


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return MASK if str(keyword).lower() in SENSITIVE_KEYWORDS else value


def truncate_content(content: Any) -> Any:
    if isinstance(content, bytes | bytearray):
        return f'<{len(content)} bytes>'
    text = str(content)
    if len(text) > MAX_CONTENT_LENGTH:
        return f'{text[:MAX_CONTENT_LENGTH]}...(+{len(text) - MAX_CONTENT_LENGTH} chars)'
    return content

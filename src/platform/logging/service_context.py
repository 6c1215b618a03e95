"""
Service context tag attached to every log line.

Format: ``{SERVICE_NAME}@{DEPLOY_ENV}:{instance}`` where instance is the
container hostname when running in a container, otherwise the local pid.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'concert-booking')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    instance = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())
    return f'{service_name}@{deploy_env}:{instance}'

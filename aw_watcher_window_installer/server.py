"""
Reachability check for the ActivityWatch server the watcher will report to.
"""

import logging

import requests

logger = logging.getLogger(__name__)


def server_url(host: str, port: int) -> str:
    return f"http://{host}:{port}/api/0/info"


def check_server(host: str, port: int, timeout: float = 3.0) -> bool:
    """Return True if the ActivityWatch server answers on host:port."""
    url = server_url(host, port)
    try:
        response = requests.get(url, timeout=timeout)
        if response.status_code == 200:
            logger.info(f"ActivityWatch server is available at {host}:{port}")
            return True
        logger.warning(f"ActivityWatch server at {url} returned {response.status_code}")
    except requests.RequestException as e:
        logger.warning(f"ActivityWatch server not reachable at {url}: {e}")
    return False

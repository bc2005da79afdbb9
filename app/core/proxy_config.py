"""
代理池配置模块
Optional HTTP proxy for the fund API session.
"""
import os
import logging
import requests
from typing import Optional, Dict

logger = logging.getLogger(__name__)

# 代理池配置（默认关闭）
PROXY_POOL_ENABLED = os.environ.get('PROXY_POOL_ENABLED', 'false').lower() == 'true'
PROXY_POOL_HOST = os.environ.get('PROXY_POOL_HOST', 'host.docker.internal')
PROXY_POOL_HTTP_PORT = os.environ.get('PROXY_POOL_HTTP_PORT', '17286')

HTTP_PROXY_URL = f"http://{PROXY_POOL_HOST}:{PROXY_POOL_HTTP_PORT}"


def get_proxy_config() -> Optional[Dict[str, str]]:
    """
    获取代理配置

    Returns:
        requests-style proxies dict, or None when the proxy pool is disabled
    """
    if not PROXY_POOL_ENABLED:
        return None

    return {
        'http': HTTP_PROXY_URL,
        'https': HTTP_PROXY_URL,
    }


def get_requests_session_with_proxy() -> requests.Session:
    """
    创建一个配置了代理的requests会话

    Returns:
        requests.Session with JSON headers and, if enabled, the proxy
    """
    session = requests.Session()

    proxies = get_proxy_config()
    if proxies:
        session.proxies.update(proxies)
        logger.info(f"[Proxy] Session configured with proxy: {HTTP_PROXY_URL}")

    session.headers.update({
        'User-Agent': 'SmartFund/1.0',
        'Accept': 'application/json',
        'Accept-Language': 'zh-CN,zh;q=0.9,en;q=0.8',
    })

    return session

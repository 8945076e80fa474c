# common/network_utils.py
# -*- coding: utf-8 -*-
"""
Network-related utility functions: downloads, HTTP probes and hostname
validation.
"""
import logging
import re
import warnings
from pathlib import Path
from typing import Optional, Union

import requests

from installer.config_models import AppSettings
from .command_utils import get_symbols, log_server

module_logger = logging.getLogger(__name__)

DOMAIN_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))+$"
)


def is_valid_domain(domain: str) -> bool:
    """Return True for hostname-like FQDNs such as 'example.com'."""
    if not isinstance(domain, str):
        return False
    return bool(DOMAIN_PATTERN.match(domain))


def fetch_text(
    url: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    timeout: float = 30,
) -> str:
    """
    GET `url` and return the body as text.

    Raises:
        requests.RequestException: On connection errors and HTTP error codes.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_server(
        f"{get_symbols(app_settings).get('globe', '🌐')} Fetching {url}",
        "info",
        logger_to_use,
        app_settings,
    )
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def download_file(
    url: str,
    download_to_path: Union[str, Path],
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    timeout: float = 120,
) -> bool:
    """
    Stream `url` to a local file.

    Returns:
        True if the download was successful, False otherwise.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    download_path = Path(download_to_path)
    log_server(
        f"{symbols.get('globe', '🌐')} Downloading {url} to {download_path}",
        "info",
        logger_to_use,
        app_settings,
    )
    response: Optional[requests.Response] = None
    try:
        download_path.parent.mkdir(parents=True, exist_ok=True)
        response = requests.get(url, stream=True, timeout=timeout)
        response.raise_for_status()
        with open(download_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
        return True
    except requests.exceptions.HTTPError as http_err:
        status_code = response.status_code if response is not None else "Unknown"
        log_server(
            f"{symbols.get('error', '❌')} HTTP error downloading {url}: {http_err} (status {status_code})",
            "error",
            logger_to_use,
            app_settings,
        )
    except requests.exceptions.RequestException as req_err:
        log_server(
            f"{symbols.get('error', '❌')} Download of {url} failed: {req_err}",
            "error",
            logger_to_use,
            app_settings,
        )
    except IOError as io_err:
        log_server(
            f"{symbols.get('error', '❌')} Could not write {download_path}: {io_err}",
            "error",
            logger_to_use,
            app_settings,
        )
    return False


def probe_url(
    url: str,
    timeout: float = 10,
    verify: bool = True,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    GET `url` and return the stripped body, or None on any request error.

    With `verify=False` certificate checks are skipped and urllib3's
    InsecureRequestWarning is silenced for this call only.
    """
    logger_to_use = current_logger if current_logger else module_logger
    try:
        with warnings.catch_warnings():
            if not verify:
                warnings.simplefilter("ignore")
            response = requests.get(url, timeout=timeout, verify=verify)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger_to_use.warning(f"Probe of {url} failed: {e}")
        return None
    return response.text.strip()

# installer/config.py
# -*- coding: utf-8 -*-
"""
Centralized static constants for the VDS provisioner.

This module defines truly static values, such as the script version and the
component groups with their installation order.

Mutable runtime configuration (user names, paths, templates, URLs) is
handled by 'installer/config_models.py' and 'installer/config_loader.py'.
"""

from typing import Dict, List

SCRIPT_VERSION: str = "2.0"

# Component groups and their installation order (mirrors the base image run).
COMPONENT_GROUPS: Dict[str, List[str]] = {
    "base": [
        "system_update",
        "prerequisites",
        "php",
        "nginx",
        "mysql",
        "memcached",
        "admin_user",
        "ioncube",
        "phpmyadmin",
        "ufw",
        "fail2ban",
        "logrotate",
        "certbot",
    ],
    "web": [
        "php",
        "nginx",
        "certbot",
    ],
    "security": [
        "ufw",
        "fail2ban",
    ],
}

# Services reloaded at the end of a full run. Failures here are not fatal.
FINALIZE_RELOAD_SERVICES: List[str] = ["nginx", "php{php_version}-fpm", "mysql"]

DEBIAN_NONINTERACTIVE_ENV: Dict[str, str] = {
    "DEBIAN_FRONTEND": "noninteractive",
}

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅", "error": "❌", "warning": "⚠️", "info": "ℹ️",
    "step": "➡️", "gear": "⚙️", "package": "📦", "rocket": "🚀",
    "sparkles": "✨", "critical": "🔥", "debug": "🐛", "key": "🔑",
    "lock": "🔒", "globe": "🌐",
}
